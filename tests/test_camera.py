"""
Test cases for the OpenCV camera adapter.
"""
import asyncio
import importlib.util
import threading
import unittest

import numpy as np

import fakes  # noqa: F401
from signstream.config import load_config

HAVE_CV2 = importlib.util.find_spec("cv2") is not None
if HAVE_CV2:
    from signstream.camera import OpenCVCamera


class SlowCapture:
    """VideoCapture stand-in whose read blocks until the test lets it finish."""

    def __init__(self):
        self.read_started = threading.Event()
        self.finish_read = threading.Event()
        self.reading = False
        self.released = False
        self.released_during_read = None

    def read(self):
        self.reading = True
        self.read_started.set()
        self.finish_read.wait(5.0)
        self.reading = False
        return True, np.zeros((4, 4, 3), dtype=np.uint8)

    def release(self):
        self.released_during_read = self.reading
        self.released = True


@unittest.skipUnless(HAVE_CV2, "opencv is required")
class TestOpenCVCamera(unittest.IsolatedAsyncioTestCase):
    """Test that reads and release never overlap."""

    async def asyncSetUp(self):
        self.camera = OpenCVCamera(load_config().camera)
        self.cap = SlowCapture()
        self.camera.cap = self.cap

    async def test_release_waits_for_read_in_flight(self):
        read_task = asyncio.ensure_future(self.camera.read())
        await asyncio.to_thread(self.cap.read_started.wait, 5.0)

        release_task = asyncio.ensure_future(asyncio.to_thread(self.camera.release))
        await asyncio.sleep(0.05)
        self.assertFalse(self.cap.released)

        self.cap.finish_read.set()
        frame = await read_task
        await release_task

        self.assertEqual(frame.shape, (4, 4, 3))
        self.assertTrue(self.cap.released)
        self.assertFalse(self.cap.released_during_read)
        self.assertIsNone(self.camera.cap)

    async def test_read_after_release(self):
        self.camera.release()
        self.camera.release()
        self.assertIsNone(await self.camera.read())


if __name__ == '__main__':
    unittest.main()
