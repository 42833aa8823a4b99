"""
Feature extraction from landmark detections.

Both extractors are total: any LandmarkSet, including the empty one, yields a
vector of the family's fixed length. Absent groups are zero-filled in place so
the classifier always sees the input shape it was trained on.
"""
from typing import Optional, Sequence

import numpy as np

from .types import (
    HAND_POINTS,
    LEFT_HAND,
    POSE,
    POSE_POINTS,
    RIGHT_HAND,
    Landmark,
    LandmarkSet,
)

HAND_SEGMENT = HAND_POINTS * 3   # 63
POSE_SEGMENT = POSE_POINTS * 4   # 132

STATIC_FEATURES = 2 * HAND_SEGMENT                  # 126
DYNAMIC_FEATURES = POSE_SEGMENT + 2 * HAND_SEGMENT  # 258


def _segment(points: Optional[Sequence[Landmark]], length: int,
             with_visibility: bool) -> np.ndarray:
    """
    Flatten one landmark group into a segment of exactly `length` values.

    Args:
        points: Landmarks in detector order, or None if the group is absent
        length: Sub-length the group occupies in the feature vector
        with_visibility: Append the visibility value after x, y, z

    Returns:
        float32 array of shape (length,)
    """
    out = np.zeros(length, dtype=np.float32)
    if not points:
        return out

    if with_visibility:
        flat = [v for p in points for v in (p.x, p.y, p.z, p.visibility)]
    else:
        flat = [v for p in points for v in (p.x, p.y, p.z)]

    n = min(len(flat), length)
    out[:n] = flat[:n]
    return out


def extract_static(landmarks: LandmarkSet) -> np.ndarray:
    """
    Build the 126-value static feature vector.

    The right hand comes first, then the left hand. Static classifiers are
    trained on this order.
    """
    right = _segment(landmarks.get(RIGHT_HAND), HAND_SEGMENT, with_visibility=False)
    left = _segment(landmarks.get(LEFT_HAND), HAND_SEGMENT, with_visibility=False)
    return np.concatenate([right, left])


def extract_dynamic(landmarks: LandmarkSet) -> np.ndarray:
    """Build the 258-value dynamic feature vector: pose, left hand, right hand."""
    pose = _segment(landmarks.get(POSE), POSE_SEGMENT, with_visibility=True)
    left = _segment(landmarks.get(LEFT_HAND), HAND_SEGMENT, with_visibility=False)
    right = _segment(landmarks.get(RIGHT_HAND), HAND_SEGMENT, with_visibility=False)
    return np.concatenate([pose, left, right])


def hands_present(vec: np.ndarray) -> bool:
    """True if a dynamic feature vector carries any non-zero hand values."""
    return bool(np.any(vec[POSE_SEGMENT:DYNAMIC_FEATURES]))
