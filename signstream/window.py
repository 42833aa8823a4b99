"""
Fixed-length window of dynamic feature vectors.
"""
from typing import List, Optional

import numpy as np

from .features import DYNAMIC_FEATURES
from .types import WindowReady


class TemporalWindowBuffer:
    """
    Collects dynamic feature vectors until a full window is available.

    The buffer resets instead of sliding: once `capacity` vectors are in, the
    whole window is handed out and collection starts again from the next push.
    A gesture straddling two windows is missed rather than classified twice.
    """

    def __init__(self, capacity: int = 45, num_features: int = DYNAMIC_FEATURES):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.num_features = num_features
        self._frames: List[np.ndarray] = []
        self._next_window_id = 0

    def push(self, vec: np.ndarray) -> Optional[WindowReady]:
        """
        Append one feature vector.

        Args:
            vec: Feature vector of length `num_features`

        Returns:
            WindowReady when this push completed the window, None otherwise
        """
        vec = np.asarray(vec, dtype=np.float32)
        if vec.shape != (self.num_features,):
            raise ValueError(
                f"Expected feature vector of shape ({self.num_features},), got {vec.shape}"
            )

        self._frames.append(vec)
        if len(self._frames) < self.capacity:
            return None

        ready = WindowReady(window_id=self._next_window_id, frames=np.stack(self._frames))
        self._next_window_id += 1
        self._frames = []
        return ready

    def clear(self) -> None:
        self._frames = []

    @property
    def progress(self) -> float:
        """Fill level in [0, 1]."""
        return len(self._frames) / self.capacity

    def __len__(self) -> int:
        return len(self._frames)
