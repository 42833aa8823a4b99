"""
Model resource manager.

Loads the static and dynamic classifiers plus their label maps exactly once
and shares them, read-only, with every capture session.
"""
import asyncio
import json
import logging
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

import joblib
import numpy as np

from .config import ModelsConfig
from .errors import ResourceNotReady
from .types import GestureFamily

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPair:
    static: Any
    dynamic: Any


@dataclass(frozen=True)
class LabelPair:
    static: List[str]
    dynamic: List[str]


class KerasClassifier:
    """Adapter giving a Keras model the `predict_proba` interface."""

    def __init__(self, model: Any):
        self.model = model

    def predict_proba(self, batch: np.ndarray) -> np.ndarray:
        return np.asarray(self.model(batch, training=False))


def load_model_file(path: Path) -> Any:
    """
    Load a classifier from disk.

    Args:
        path: .keras/.h5 file (TensorFlow Keras), .pkl file (pickle) or .joblib file (joblib)

    Returns:
        An object exposing `predict_proba(batch) -> probabilities`
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in (".keras", ".h5"):
        from tensorflow import keras
        return KerasClassifier(keras.models.load_model(str(path), compile=False))
    if suffix in (".pkl", ".pickle", ".joblib"):
        if suffix == ".joblib":
            data = joblib.load(path)
        else:
            with open(path, "rb") as f:
                data = pickle.load(f)
        # Training scripts often dump {"model": ..., "gestures": [...]}
        return data["model"] if isinstance(data, dict) and "model" in data else data
    raise ValueError(f"Unsupported model format: {path}")


def load_label_file(path: Path) -> List[str]:
    """
    Load a label map.

    Accepts a JSON list, or a JSON object keyed by class index
    (e.g. {"0": "A", "1": "B"}).
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return [str(v) for v in data]
    return [str(data[k]) for k in sorted(data, key=int)]


class ModelStore:
    """
    Shared holder of classifier models and label lists.

    `initialize()` is idempotent: concurrent callers await the same load, and a
    failed load can be retried by calling it again.
    """

    def __init__(self, cfg: ModelsConfig,
                 model_loader: Callable[[Path], Any] = load_model_file,
                 label_loader: Callable[[Path], List[str]] = load_label_file):
        self.cfg = cfg
        self._model_loader = model_loader
        self._label_loader = label_loader
        self._models: Optional[ModelPair] = None
        self._labels: Optional[LabelPair] = None
        self._load_task: Optional[asyncio.Task] = None

    @property
    def is_ready(self) -> bool:
        return self._models is not None and self._labels is not None

    async def initialize(self) -> None:
        """Load all resources, or wait for the load already in progress."""
        if self.is_ready:
            return
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        task = self._load_task
        try:
            await asyncio.shield(task)
        except Exception:
            if self._load_task is task:
                self._load_task = None
            raise

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        """Start loading if needed and wait until it finished."""
        await asyncio.wait_for(self.initialize(), timeout)

    async def _load(self) -> None:
        logger.info("🧠 Loading classifier models and labels...")
        try:
            static_model, dynamic_model, static_labels, dynamic_labels = await asyncio.gather(
                asyncio.to_thread(self._model_loader, self.cfg.static_model),
                asyncio.to_thread(self._model_loader, self.cfg.dynamic_model),
                asyncio.to_thread(self._label_loader, self.cfg.static_labels),
                asyncio.to_thread(self._label_loader, self.cfg.dynamic_labels),
            )
        except Exception as e:
            logger.error(f"❌ Failed to load model resources: {e}")
            raise

        self._models = ModelPair(static=static_model, dynamic=dynamic_model)
        self._labels = LabelPair(static=static_labels, dynamic=dynamic_labels)
        logger.info(
            f"✅ Models ready ({len(static_labels)} static, {len(dynamic_labels)} dynamic labels)"
        )

    def get_models(self, family: Optional[GestureFamily] = None) -> ModelPair:
        """Return both models. Raises ResourceNotReady before initialization."""
        if self._models is None:
            raise ResourceNotReady("Models are not loaded yet")
        return self._models

    def get_labels(self, family: Optional[GestureFamily] = None) -> LabelPair:
        """Return both label lists. Raises ResourceNotReady before initialization."""
        if self._labels is None:
            raise ResourceNotReady("Labels are not loaded yet")
        return self._labels
