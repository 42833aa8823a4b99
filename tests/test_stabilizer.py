"""
Test cases for the static prediction stabilizer.
"""
import unittest

import fakes  # noqa: F401  (puts the project root on sys.path)
from signstream.stabilizer import PredictionStabilizer
from signstream.types import PredictionSample


def sample(label: str, conf: float, i: int = 0) -> PredictionSample:
    return PredictionSample(label=label, confidence=conf, produced_at=i)


class TestPredictionStabilizer(unittest.TestCase):
    """Test confidence-gated debouncing."""

    def setUp(self):
        self.stabilizer = PredictionStabilizer(capacity=8, threshold=0.85)

    def test_kth_agreeing_push_is_stable(self):
        for i in range(7):
            self.assertIsNone(self.stabilizer.push(sample("B", 0.9, i)))
        self.assertEqual(self.stabilizer.push(sample("B", 0.9, 7)), "B")
        self.assertEqual(self.stabilizer.stable_label, "B")

    def test_threshold_is_inclusive(self):
        for i in range(8):
            result = self.stabilizer.push(sample("A", 0.85, i))
        self.assertEqual(result, "A")

    def test_disagreeing_sample_clears_output(self):
        for i in range(8):
            self.stabilizer.push(sample("A", 0.95, i))
        self.assertIsNone(self.stabilizer.push(sample("C", 0.95, 8)))

        # "A" needs a full buffer of agreement again
        for i in range(7):
            self.assertIsNone(self.stabilizer.push(sample("A", 0.95, 9 + i)))
        self.assertEqual(self.stabilizer.push(sample("A", 0.95, 16)), "A")

    def test_sub_threshold_sample_clears_output(self):
        for i in range(8):
            self.stabilizer.push(sample("A", 0.95, i))
        self.assertIsNone(self.stabilizer.push(sample("A", 0.5, 8)))
        self.assertIsNone(self.stabilizer.stable_label)

    def test_low_sample_evicted_after_capacity(self):
        self.stabilizer.push(sample("A", 0.5, 0))
        results = [self.stabilizer.push(sample("A", 0.9, i)) for i in range(1, 9)]
        self.assertEqual(results[:-1], [None] * 7)
        self.assertEqual(results[-1], "A")

    def test_reset(self):
        for i in range(8):
            self.stabilizer.push(sample("A", 0.95, i))
        self.stabilizer.reset()

        self.assertEqual(len(self.stabilizer), 0)
        self.assertIsNone(self.stabilizer.stable_label)
        self.assertIsNone(self.stabilizer.latest)

    def test_buffer_is_bounded(self):
        for i in range(20):
            self.stabilizer.push(sample("A", 0.9, i))
        self.assertEqual(len(self.stabilizer), 8)
        self.assertEqual(self.stabilizer.latest.produced_at, 19)

    def test_empty_label_never_stable(self):
        for i in range(8):
            result = self.stabilizer.push(sample("", 0.99, i))
        self.assertIsNone(result)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            PredictionStabilizer(capacity=0)


if __name__ == '__main__':
    unittest.main()
