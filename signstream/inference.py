"""
Invocation of the static and dynamic classifiers.
"""
import asyncio
import logging
from typing import Any, List, Optional, Tuple

import numpy as np

from .errors import InferenceFailure, InsufficientSignal, LowConfidence
from .models import ModelStore
from .types import GestureFamily, Outcome, PracticeResult, PredictionSample, WindowReady

logger = logging.getLogger(__name__)

UNKNOWN_DYNAMIC_LABEL = "UNKNOWN"


def _top_prediction(model: Any, batch: np.ndarray, labels: List[str],
                    unknown: str) -> Tuple[str, float]:
    """Run the model on a batch of one and return (label, confidence)."""
    probs = np.asarray(model.predict_proba(batch), dtype=np.float32).reshape(-1)
    if probs.size == 0:
        raise ValueError("Model returned no probabilities")
    idx = int(np.argmax(probs))
    label = labels[idx] if idx < len(labels) else unknown
    return label, float(probs[idx])


class InferenceGateway:
    """Runs the shared classifiers for a capture session."""

    def __init__(self, store: ModelStore, sequence_length: int = 45):
        self.store = store
        self.sequence_length = sequence_length

    def run_static(self, features: np.ndarray, produced_at: int = 0) -> PredictionSample:
        """
        Classify one static feature vector.

        Args:
            features: 126-value static feature vector
            produced_at: Frame index the features came from

        Returns:
            PredictionSample with the arg-max label and its probability

        Raises:
            ResourceNotReady: models not loaded
            InferenceFailure: the model runtime raised
        """
        model = self.store.get_models(GestureFamily.STATIC).static
        labels = self.store.get_labels(GestureFamily.STATIC).static
        batch = np.asarray(features, dtype=np.float32).reshape(1, -1)
        try:
            label, confidence = _top_prediction(model, batch, labels, unknown="")
        except Exception as e:
            raise InferenceFailure(f"Static model failed: {e}") from e
        return PredictionSample(label=label, confidence=confidence, produced_at=produced_at)

    async def run_dynamic(self, window: WindowReady,
                          produced_at: int = 0) -> PredictionSample:
        """
        Classify a completed window off the event loop.

        Raises:
            ResourceNotReady: models not loaded
            InsufficientSignal: the window is shorter than the sequence length
            InferenceFailure: the model runtime raised
        """
        if len(window) < self.sequence_length:
            raise InsufficientSignal(
                f"Need {self.sequence_length} frames, got {len(window)}"
            )
        model = self.store.get_models(GestureFamily.DYNAMIC).dynamic
        labels = self.store.get_labels(GestureFamily.DYNAMIC).dynamic
        batch = window.frames[-self.sequence_length:][np.newaxis, ...]
        try:
            label, confidence = await asyncio.to_thread(
                _top_prediction, model, batch, labels, UNKNOWN_DYNAMIC_LABEL
            )
        except Exception as e:
            raise InferenceFailure(f"Dynamic model failed: {e}") from e

        logger.info(f"Dynamic prediction: {label} ({confidence:.2f})")
        return PredictionSample(label=label, confidence=confidence,
                                produced_at=produced_at, window_id=window.window_id)


def require_confidence(sample: PredictionSample, floor: float) -> None:
    """Raise LowConfidence if the sample is below the floor."""
    if sample.confidence < floor:
        raise LowConfidence(
            f"{sample.label!r} at {sample.confidence:.2f} is below the {floor:.2f} floor"
        )


def classify_outcome(sample: PredictionSample, expected: Optional[str],
                     floor: float) -> PracticeResult:
    """
    Three-way practice policy.

    Below the floor the user is asked to try again instead of being told they
    were wrong. Labels compare case-insensitively.
    """
    try:
        require_confidence(sample, floor)
    except LowConfidence as e:
        logger.info(f"Asking for a retry: {e}")
        return PracticeResult(outcome=Outcome.RETRY, expected=expected,
                              label=sample.label, confidence=sample.confidence,
                              reason=e.reason)
    if expected is not None and sample.label.lower() == expected.lower():
        outcome = Outcome.CORRECT
    else:
        outcome = Outcome.INCORRECT
    return PracticeResult(outcome=outcome, expected=expected,
                          label=sample.label, confidence=sample.confidence)
