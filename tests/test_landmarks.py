"""
Test cases for MediaPipe result conversion and overlay drawing.
"""
import importlib.util
import unittest
from types import SimpleNamespace

import numpy as np

import fakes  # noqa: F401
from signstream.types import LEFT_HAND, POSE, RIGHT_HAND, LandmarkSet

HAVE_VISION = all(importlib.util.find_spec(m) is not None for m in ("cv2", "mediapipe"))
if HAVE_VISION:
    from signstream.landmarks import (
        draw_landmarks,
        hands_result_to_landmarks,
        holistic_result_to_landmarks,
    )


def landmark_list(n: int, x0: float = 0.5, visibility: float = 0.8):
    return SimpleNamespace(landmark=[
        SimpleNamespace(x=x0 + i * 0.001, y=0.5, z=0.0, visibility=visibility) for i in range(n)
    ])


def handedness(label: str):
    return SimpleNamespace(classification=[SimpleNamespace(label=label, score=0.99)])


@unittest.skipUnless(HAVE_VISION, "opencv and mediapipe are required")
class TestHandsConversion(unittest.TestCase):
    """Test mapping MediaPipe Hands output to left/right groups."""

    def test_no_hands(self):
        results = SimpleNamespace(multi_hand_landmarks=None, multi_handedness=None)
        self.assertEqual(hands_result_to_landmarks(results).groups, {})

    def test_two_hands_by_handedness(self):
        results = SimpleNamespace(
            multi_hand_landmarks=[landmark_list(21, 0.2), landmark_list(21, 0.6)],
            multi_handedness=[handedness("Left"), handedness("Right")]
        )
        landmarks = hands_result_to_landmarks(results)

        self.assertAlmostEqual(landmarks.get(LEFT_HAND)[0].x, 0.2)
        self.assertAlmostEqual(landmarks.get(RIGHT_HAND)[0].x, 0.6)
        self.assertEqual(landmarks.get(LEFT_HAND)[0].visibility, 0.0)

    def test_repeated_side_keeps_last(self):
        results = SimpleNamespace(
            multi_hand_landmarks=[landmark_list(21, 0.2), landmark_list(21, 0.6)],
            multi_handedness=[handedness("Right"), handedness("Right")]
        )
        landmarks = hands_result_to_landmarks(results)

        self.assertIsNone(landmarks.get(LEFT_HAND))
        self.assertAlmostEqual(landmarks.get(RIGHT_HAND)[0].x, 0.6)


@unittest.skipUnless(HAVE_VISION, "opencv and mediapipe are required")
class TestHolisticConversion(unittest.TestCase):
    """Test mapping MediaPipe Holistic output to pose/hand groups."""

    def test_pose_keeps_visibility(self):
        results = SimpleNamespace(pose_landmarks=landmark_list(33, visibility=0.7),
                                  left_hand_landmarks=None,
                                  right_hand_landmarks=landmark_list(21))
        landmarks = holistic_result_to_landmarks(results)

        self.assertEqual(len(landmarks.get(POSE)), 33)
        self.assertAlmostEqual(landmarks.get(POSE)[0].visibility, 0.7)
        self.assertIsNone(landmarks.get(LEFT_HAND))
        self.assertTrue(landmarks.has_hands())

    def test_nothing_detected(self):
        results = SimpleNamespace(pose_landmarks=None, left_hand_landmarks=None,
                                  right_hand_landmarks=None)
        self.assertFalse(holistic_result_to_landmarks(results).has_hands())


@unittest.skipUnless(HAVE_VISION, "opencv and mediapipe are required")
class TestDrawLandmarks(unittest.TestCase):
    """Test the overlay."""

    def test_draws_points(self):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        draw_landmarks(frame, fakes.holistic_frame())
        self.assertTrue(np.any(frame))

    def test_empty_set_leaves_frame(self):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        draw_landmarks(frame, LandmarkSet.empty())
        self.assertFalse(np.any(frame))


if __name__ == '__main__':
    unittest.main()
