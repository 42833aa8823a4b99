"""
Mock feedback sink that records pipeline events instead of rendering them.
"""
import logging
from typing import Any, List, Optional, Tuple

from .types import LabelUpdate, LandmarkSet, PracticeResult, SessionState

logger = logging.getLogger(__name__)


class MockFeedback:
    """Feedback sink that logs and records every event, for tests and headless runs."""

    def __init__(self):
        """Initialize the mock feedback sink."""
        self.reset_counters()

    def reset_counters(self) -> None:
        """Reset recorded events for testing."""
        self.overlay_count = 0
        self.labels: List[LabelUpdate] = []
        self.progress: List[Tuple[int, int]] = []
        self.outcomes: List[PracticeResult] = []
        self.sentences: List[str] = []
        self.states: List[SessionState] = []
        self.errors: List[Exception] = []

    async def on_overlay(self, frame: Any, landmarks: LandmarkSet) -> None:
        self.overlay_count += 1

    async def on_label(self, update: LabelUpdate) -> None:
        self.labels.append(update)

    async def on_progress(self, collected: int, total: int) -> None:
        self.progress.append((collected, total))

    async def on_outcome(self, result: PracticeResult) -> None:
        self.outcomes.append(result)
        logger.info(f"[MockFeedback] Outcome: {result.outcome.value} "
                    f"(label={result.label}, expected={result.expected})")

    async def on_sentence(self, text: str) -> None:
        self.sentences.append(text)
        logger.info(f"[MockFeedback] Sentence: {text!r}")

    async def on_state(self, state: SessionState) -> None:
        self.states.append(state)

    async def on_error(self, error: Exception) -> None:
        self.errors.append(error)
        logger.info(f"[MockFeedback] Error: {error}")

    @property
    def last_outcome(self) -> Optional[PracticeResult]:
        return self.outcomes[-1] if self.outcomes else None

