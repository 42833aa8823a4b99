"""
Test cases for classifier invocation and the practice outcome policy.
"""
import unittest

import numpy as np

import fakes
from signstream.config import load_config
from signstream.errors import InferenceFailure, InsufficientSignal, LowConfidence, ResourceNotReady
from signstream.features import DYNAMIC_FEATURES, STATIC_FEATURES
from signstream.inference import (
    UNKNOWN_DYNAMIC_LABEL,
    InferenceGateway,
    classify_outcome,
    require_confidence,
)
from signstream.models import ModelStore
from signstream.types import Outcome, PredictionSample, RetryReason, WindowReady


def window(length: int = 45, window_id: int = 0) -> WindowReady:
    return WindowReady(window_id=window_id,
                       frames=np.full((length, DYNAMIC_FEATURES), 0.1, dtype=np.float32))


class TestInferenceGateway(unittest.IsolatedAsyncioTestCase):
    """Test static and dynamic invocation."""

    async def asyncSetUp(self):
        self.cfg = load_config()

    async def gateway(self, **kwargs) -> InferenceGateway:
        store = await fakes.ready_store(self.cfg.models, **kwargs)
        return InferenceGateway(store, self.cfg.window.sequence_length)

    async def test_static_argmax(self):
        model = fakes.ScriptedModel(fakes.one_hot(fakes.STATIC_LABELS, "B", 0.92))
        gateway = await self.gateway(static_model=model)

        sample = gateway.run_static(np.zeros(STATIC_FEATURES, dtype=np.float32), produced_at=7)

        self.assertEqual(sample.label, "B")
        self.assertAlmostEqual(sample.confidence, 0.92, places=5)
        self.assertEqual(sample.produced_at, 7)
        self.assertEqual(model.batches[0].shape, (1, STATIC_FEATURES))

    async def test_static_unknown_index_is_empty_label(self):
        probs = np.array([0.05, 0.05, 0.05, 0.05, 0.05, 0.75], dtype=np.float32)
        gateway = await self.gateway(static_model=fakes.ScriptedModel(probs))

        sample = gateway.run_static(np.zeros(STATIC_FEATURES, dtype=np.float32))
        self.assertEqual(sample.label, "")

    async def test_static_model_error(self):
        gateway = await self.gateway(static_model=fakes.BrokenModel())
        with self.assertRaises(InferenceFailure):
            gateway.run_static(np.zeros(STATIC_FEATURES, dtype=np.float32))

    async def test_not_ready_store(self):
        gateway = InferenceGateway(ModelStore(self.cfg.models))
        with self.assertRaises(ResourceNotReady):
            gateway.run_static(np.zeros(STATIC_FEATURES, dtype=np.float32))

    async def test_dynamic_prediction(self):
        model = fakes.ScriptedModel(fakes.one_hot(fakes.DYNAMIC_LABELS, "Happy", 0.8))
        gateway = await self.gateway(dynamic_model=model)

        sample = await gateway.run_dynamic(window(window_id=3), produced_at=90)

        self.assertEqual(sample.label, "Happy")
        self.assertEqual(sample.window_id, 3)
        self.assertEqual(sample.produced_at, 90)
        self.assertEqual(model.batches[0].shape, (1, 45, DYNAMIC_FEATURES))

    async def test_dynamic_unknown_index(self):
        probs = np.zeros(len(fakes.DYNAMIC_LABELS) + 1, dtype=np.float32)
        probs[-1] = 1.0
        gateway = await self.gateway(dynamic_model=fakes.ScriptedModel(probs))

        sample = await gateway.run_dynamic(window())
        self.assertEqual(sample.label, UNKNOWN_DYNAMIC_LABEL)

    async def test_short_window(self):
        model = fakes.ScriptedModel(fakes.one_hot(fakes.DYNAMIC_LABELS, "Happy", 0.8))
        gateway = await self.gateway(dynamic_model=model)

        with self.assertRaises(InsufficientSignal):
            await gateway.run_dynamic(window(length=30))
        self.assertEqual(model.calls, 0)

    async def test_dynamic_model_error(self):
        gateway = await self.gateway(dynamic_model=fakes.BrokenModel())
        with self.assertRaises(InferenceFailure):
            await gateway.run_dynamic(window())


class TestClassifyOutcome(unittest.TestCase):
    """Test the correct / incorrect / retry policy."""

    def test_correct_ignores_case(self):
        result = classify_outcome(PredictionSample("happy", 0.9, 0), "Happy", 0.3)
        self.assertEqual(result.outcome, Outcome.CORRECT)
        self.assertIsNone(result.reason)

    def test_incorrect(self):
        result = classify_outcome(PredictionSample("Sad", 0.7, 0), "Happy", 0.3)
        self.assertEqual(result.outcome, Outcome.INCORRECT)
        self.assertEqual(result.label, "Sad")
        self.assertEqual(result.expected, "Happy")

    def test_below_floor_is_retry(self):
        result = classify_outcome(PredictionSample("Happy", 0.2, 0), "Happy", 0.3)
        self.assertEqual(result.outcome, Outcome.RETRY)
        self.assertEqual(result.reason, RetryReason.LOW_CONFIDENCE)

    def test_floor_is_inclusive(self):
        result = classify_outcome(PredictionSample("Sad", 0.3, 0), "Happy", 0.3)
        self.assertEqual(result.outcome, Outcome.INCORRECT)

    def test_require_confidence(self):
        with self.assertRaises(LowConfidence) as ctx:
            require_confidence(PredictionSample("Happy", 0.2, 0), 0.3)
        self.assertEqual(ctx.exception.reason, RetryReason.LOW_CONFIDENCE)

        require_confidence(PredictionSample("Happy", 0.3, 0), 0.3)


if __name__ == '__main__':
    unittest.main()
