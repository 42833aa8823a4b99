"""
SignStream

Real-time sign recognition from hand and pose landmarks: feature extraction,
prediction stabilization, temporal windowing for dynamic signs, the capture
session state machine and sentence assembly.
"""

__version__ = "0.1.0"

from .types import (
    GestureFamily,
    SessionState,
    Outcome,
    RetryReason,
    Landmark,
    LandmarkSet,
    PredictionSample,
    WindowReady,
    PracticeResult,
    LabelUpdate,
    Camera,
    Detector,
    FeedbackSink,
)
from .config import load_config, Cfg
from .errors import (
    SignStreamError,
    ResourceUnavailable,
    ResourceNotReady,
    SoftFailure,
    InsufficientSignal,
    LowConfidence,
    InferenceFailure,
)
from .features import extract_static, extract_dynamic
from .stabilizer import PredictionStabilizer
from .window import TemporalWindowBuffer
from .sentence import SentenceAssembler
from .models import ModelStore
from .inference import InferenceGateway, classify_outcome
from .session import CaptureSession, CancellationToken, FramePump
from .feedback_mock import MockFeedback

__all__ = [
    "GestureFamily",
    "SessionState",
    "Outcome",
    "RetryReason",
    "Landmark",
    "LandmarkSet",
    "PredictionSample",
    "WindowReady",
    "PracticeResult",
    "LabelUpdate",
    "Camera",
    "Detector",
    "FeedbackSink",
    "load_config",
    "Cfg",
    "SignStreamError",
    "ResourceUnavailable",
    "ResourceNotReady",
    "SoftFailure",
    "InsufficientSignal",
    "LowConfidence",
    "InferenceFailure",
    "extract_static",
    "extract_dynamic",
    "PredictionStabilizer",
    "TemporalWindowBuffer",
    "SentenceAssembler",
    "ModelStore",
    "InferenceGateway",
    "classify_outcome",
    "CaptureSession",
    "CancellationToken",
    "FramePump",
    "MockFeedback",
]
