"""
Type definitions for the landmark classification pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


# Landmark group names produced by the detectors
POSE = "pose"
LEFT_HAND = "left_hand"
RIGHT_HAND = "right_hand"

POSE_POINTS = 33
HAND_POINTS = 21


class GestureFamily(str, Enum):
    """Single-frame (static) or multi-frame (dynamic) gestures."""
    STATIC = "static"
    DYNAMIC = "dynamic"


class SessionState(str, Enum):
    """States of a capture session."""
    IDLE = "idle"
    CAMERA_ACTIVE = "camera_active"
    RECORDING = "recording"
    ANALYZING = "analyzing"
    FEEDBACK = "feedback"


class Outcome(str, Enum):
    """Result of checking a practised sign."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    RETRY = "retry"


class RetryReason(str, Enum):
    """Why a check ended in a "try again" outcome."""
    INSUFFICIENT_SIGNAL = "insufficient_signal"
    LOW_CONFIDENCE = "low_confidence"
    INFERENCE_FAILURE = "inference_failure"


@dataclass(frozen=True)
class Landmark:
    """A detected keypoint in normalized image coordinates."""
    x: float
    y: float
    z: float
    visibility: float = 0.0


@dataclass(frozen=True)
class LandmarkSet:
    """Landmark groups detected in one frame, keyed by group name."""
    groups: Mapping[str, Sequence[Landmark]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "LandmarkSet":
        return cls()

    def get(self, name: str) -> Optional[Sequence[Landmark]]:
        """Return the group's points, or None if the group is absent or empty."""
        points = self.groups.get(name)
        return points if points else None

    def has_hands(self) -> bool:
        return self.get(LEFT_HAND) is not None or self.get(RIGHT_HAND) is not None


@dataclass(frozen=True)
class PredictionSample:
    """Classifier output for one frame or one window."""
    label: str
    confidence: float
    produced_at: int
    window_id: Optional[int] = None


@dataclass(frozen=True)
class WindowReady:
    """A completed temporal window, shape (sequence_length, features)."""
    window_id: int
    frames: np.ndarray

    def __len__(self) -> int:
        return int(self.frames.shape[0])


@dataclass(frozen=True)
class PracticeResult:
    """Outcome of a practice check, as presented to the user."""
    outcome: Outcome
    expected: Optional[str]
    label: Optional[str] = None
    confidence: Optional[float] = None
    reason: Optional[RetryReason] = None


@dataclass(frozen=True)
class LabelUpdate:
    """Per-frame label state for the live "Detecting..." display."""
    stable: Optional[str]
    candidate: Optional[str]
    filled: int
    capacity: int


@runtime_checkable
class Camera(Protocol):
    """Frame source owned by a capture session."""

    def open(self) -> None:
        """Acquire the device. Raises ResourceUnavailable on failure."""
        ...

    async def read(self) -> Optional[Any]:
        """Return the next frame, or None when the device stopped delivering."""
        ...

    def release(self) -> None:
        """Release the device. Safe to call more than once."""
        ...


@runtime_checkable
class Detector(Protocol):
    """Landmark detector turning one frame into a LandmarkSet."""

    def process(self, frame: Any) -> LandmarkSet:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class FeedbackSink(Protocol):
    """Abstract protocol for surfaces that render pipeline events."""

    async def on_overlay(self, frame: Any, landmarks: LandmarkSet) -> None:
        """Render the live landmark overlay for a processed frame."""
        ...

    async def on_label(self, update: LabelUpdate) -> None:
        """Show the current stable / candidate label."""
        ...

    async def on_progress(self, collected: int, total: int) -> None:
        """Show dynamic recording progress."""
        ...

    async def on_outcome(self, result: PracticeResult) -> None:
        """Present a practice outcome."""
        ...

    async def on_sentence(self, text: str) -> None:
        """Show the assembled sentence after it changed."""
        ...

    async def on_state(self, state: SessionState) -> None:
        """Session state changed."""
        ...

    async def on_error(self, error: Exception) -> None:
        """Show a blocking, user-visible error."""
        ...
