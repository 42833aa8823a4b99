"""
Landmark detection using MediaPipe, and overlay drawing.
"""
import cv2
import mediapipe as mp
import numpy as np
from typing import Any, Dict, List, Optional, Sequence

from .config import HandsDetectorConfig, HolisticDetectorConfig
from .types import LEFT_HAND, POSE, RIGHT_HAND, Landmark, LandmarkSet

# BGR colours per landmark group
GROUP_COLORS = {
    POSE: (0, 255, 0),
    LEFT_HAND: (0, 0, 204),
    RIGHT_HAND: (0, 204, 0),
}


def _points(landmark_list: Any, with_visibility: bool = False) -> Optional[List[Landmark]]:
    """Convert a MediaPipe NormalizedLandmarkList into Landmark tuples."""
    if landmark_list is None or not landmark_list.landmark:
        return None
    return [
        Landmark(
            x=lm.x, y=lm.y, z=lm.z,
            visibility=float(getattr(lm, "visibility", 0.0)) if with_visibility else 0.0
        )
        for lm in landmark_list.landmark
    ]


def hands_result_to_landmarks(results: Any) -> LandmarkSet:
    """
    Map a MediaPipe Hands result onto left/right hand groups.

    Args:
        results: Output of `mp.solutions.hands.Hands.process`

    Returns:
        LandmarkSet with `left_hand` and/or `right_hand`; empty if no hands
    """
    groups: Dict[str, Sequence[Landmark]] = {}
    hand_lists = getattr(results, "multi_hand_landmarks", None) or []
    handedness = getattr(results, "multi_handedness", None) or []

    for i, hand_landmarks in enumerate(hand_lists):
        if i >= len(handedness):
            break
        side = (handedness[i].classification[0].label or "").lower()
        points = _points(hand_landmarks)
        if points is None:
            continue
        # A repeated side overwrites the earlier hand
        if side == "right":
            groups[RIGHT_HAND] = points
        elif side == "left":
            groups[LEFT_HAND] = points

    return LandmarkSet(groups=groups)


def holistic_result_to_landmarks(results: Any) -> LandmarkSet:
    """Map a MediaPipe Holistic result onto pose/left/right groups."""
    groups: Dict[str, Sequence[Landmark]] = {}
    pose = _points(getattr(results, "pose_landmarks", None), with_visibility=True)
    left = _points(getattr(results, "left_hand_landmarks", None))
    right = _points(getattr(results, "right_hand_landmarks", None))
    if pose:
        groups[POSE] = pose
    if left:
        groups[LEFT_HAND] = left
    if right:
        groups[RIGHT_HAND] = right
    return LandmarkSet(groups=groups)


class HandsDetector:
    """Two-hand detector for static gestures, using MediaPipe Hands."""

    def __init__(self, cfg: HandsDetectorConfig):
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=cfg.max_num_hands,
            model_complexity=cfg.model_complexity,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        )

    def process(self, frame_bgr: np.ndarray) -> LandmarkSet:
        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        return hands_result_to_landmarks(self.hands.process(frame_rgb))

    def close(self) -> None:
        self.hands.close()


class HolisticDetector:
    """Pose + hands detector for dynamic gestures, using MediaPipe Holistic."""

    def __init__(self, cfg: HolisticDetectorConfig):
        self.mp_holistic = mp.solutions.holistic
        self.holistic = self.mp_holistic.Holistic(
            static_image_mode=False,
            model_complexity=cfg.model_complexity,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        )

    def process(self, frame_bgr: np.ndarray) -> LandmarkSet:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        frame_rgb.flags.writeable = False
        return holistic_result_to_landmarks(self.holistic.process(frame_rgb))

    def close(self) -> None:
        self.holistic.close()


def draw_landmarks(frame: np.ndarray, landmarks: LandmarkSet) -> np.ndarray:
    """
    Draw every landmark group on the frame.

    Args:
        frame: BGR frame, modified in place
        landmarks: Detection result for this frame

    Returns:
        Frame with landmarks drawn
    """
    height, width = frame.shape[:2]

    for name, color in GROUP_COLORS.items():
        points = landmarks.get(name)
        if not points:
            continue
        radius = 2 if name == POSE else 3
        for p in points:
            px = int(p.x * width)
            py = int(p.y * height)
            cv2.circle(frame, (px, py), radius, color, -1)

    return frame
