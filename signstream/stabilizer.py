"""
Confidence-gated debouncing of per-frame static predictions.
"""
from collections import deque
from typing import Optional

from .types import PredictionSample


class PredictionStabilizer:
    """
    Turns a noisy per-frame (label, confidence) stream into a stable label.

    A label is stable only while the ring buffer is full and every sample in it
    agrees on the label with confidence at or above the threshold. Callers
    reset the buffer on frames without hands, since a gap breaks the run of
    consecutive frames.
    """

    def __init__(self, capacity: int = 8, threshold: float = 0.85):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.threshold = threshold
        self._buffer: deque[PredictionSample] = deque(maxlen=capacity)
        self._stable: Optional[str] = None

    def push(self, sample: PredictionSample) -> Optional[str]:
        """
        Add a sample and recompute the stable label.

        Args:
            sample: Latest classifier output

        Returns:
            The stable label, or None if the buffer does not agree
        """
        self._buffer.append(sample)

        if len(self._buffer) < self.capacity:
            self._stable = None
            return None

        label = sample.label
        all_same = all(s.label == label for s in self._buffer)
        high_conf = all(s.confidence >= self.threshold for s in self._buffer)
        self._stable = label if (all_same and high_conf and label) else None
        return self._stable

    def reset(self) -> None:
        self._buffer.clear()
        self._stable = None

    @property
    def stable_label(self) -> Optional[str]:
        """Output of the last push."""
        return self._stable

    @property
    def latest(self) -> Optional[PredictionSample]:
        return self._buffer[-1] if self._buffer else None

    def __len__(self) -> int:
        return len(self._buffer)
