"""
OpenCV camera adapter.
"""
import asyncio
import logging
import threading
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig
from .errors import ResourceUnavailable

logger = logging.getLogger(__name__)


class OpenCVCamera:
    """
    Camera backed by cv2.VideoCapture. Reads run in a worker thread.

    VideoCapture is not thread-safe, so a read and a release never overlap:
    release() waits for the read in flight and later reads return None.
    """

    def __init__(self, cfg: CameraConfig):
        self.cfg = cfg
        self.cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    def open(self) -> None:
        if self.cap is not None:
            return
        cap = cv2.VideoCapture(self.cfg.index)
        if not cap.isOpened():
            cap.release()
            raise ResourceUnavailable(
                f"Could not access camera {self.cfg.index}. Please check permissions."
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)
        cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        self.cap = cap
        logger.info(f"Camera {self.cfg.index} opened ({self.cfg.width}x{self.cfg.height} @ {self.cfg.fps}fps)")

    def _read_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            if self.cap is None:
                return None
            ret, frame = self.cap.read()
        if not ret:
            logger.warning("Failed to read frame from camera")
            return None
        return frame

    async def read(self) -> Optional[np.ndarray]:
        return await asyncio.to_thread(self._read_frame)

    def release(self) -> None:
        with self._lock:
            if self.cap is None:
                return
            self.cap.release()
            self.cap = None
        logger.info("Camera released")
