"""
Error taxonomy for the capture pipeline.

Blocking errors (ResourceUnavailable, ResourceNotReady) are raised to the
caller and shown to the user. Soft failures end a practice check with a
"try again" outcome and never leave the session stuck.
"""
from .types import RetryReason


class SignStreamError(Exception):
    """Base class for all pipeline errors."""


class ResourceUnavailable(SignStreamError):
    """Camera permission denied, device busy, or device stopped delivering frames."""


class ResourceNotReady(SignStreamError):
    """Models or detectors are not loaded yet."""


class SoftFailure(SignStreamError):
    """Recoverable failure that maps to a retry outcome."""
    reason: RetryReason = RetryReason.INFERENCE_FAILURE


class InsufficientSignal(SoftFailure):
    """No hands/pose found, or a window shorter than required."""
    reason = RetryReason.INSUFFICIENT_SIGNAL


class LowConfidence(SoftFailure):
    """The classifier answered but below the confidence floor."""
    reason = RetryReason.LOW_CONFIDENCE


class InferenceFailure(SoftFailure):
    """The model runtime raised, or did not answer in time."""
    reason = RetryReason.INFERENCE_FAILURE
