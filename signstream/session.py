"""
Capture session state machine and frame pump.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .config import Cfg
from .errors import InferenceFailure, InsufficientSignal, ResourceNotReady, ResourceUnavailable, SoftFailure
from .features import extract_dynamic, extract_static, hands_present
from .inference import InferenceGateway, classify_outcome
from .models import ModelStore
from .sentence import SentenceAssembler
from .stabilizer import PredictionStabilizer
from .types import (
    Camera,
    Detector,
    FeedbackSink,
    GestureFamily,
    LabelUpdate,
    LandmarkSet,
    Outcome,
    PracticeResult,
    RetryReason,
    SessionState,
    WindowReady,
)
from .window import TemporalWindowBuffer

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag checked by the frame pump before touching a frame."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FramePump:
    """
    Cooperative per-frame loop: read, detect, hand off, yield.

    The next frame is not read until the handler for the current one returned,
    so frames are processed strictly in arrival order.
    """

    def __init__(self, camera: Camera, detector: Detector,
                 handler: Callable[[LandmarkSet, Any], Awaitable[None]],
                 on_lost: Callable[[], Awaitable[None]]):
        self.camera = camera
        self.detector = detector
        self.handler = handler
        self.on_lost = on_lost
        self.frames_processed = 0

    async def run(self, token: CancellationToken) -> None:
        while not token.cancelled:
            frame = await self.camera.read()
            if token.cancelled:
                break
            if frame is None:
                await self.on_lost()
                break

            try:
                landmarks = self.detector.process(frame)
            except Exception as e:
                logger.warning(f"Detector failed on frame {self.frames_processed}: {e}")
                landmarks = LandmarkSet.empty()

            if token.cancelled:
                break
            await self.handler(landmarks, frame)
            self.frames_processed += 1
            await asyncio.sleep(0)


class CaptureSession:
    """
    Owns the camera, the frame pump and the per-family buffers.

    Static sessions feed every frame to a PredictionStabilizer (and, for the
    translator, a SentenceAssembler). Dynamic sessions record a fixed window on
    request and classify it while the pump keeps drawing the overlay.
    """

    def __init__(self, cfg: Cfg, family: GestureFamily, store: ModelStore,
                 camera: Camera, detector: Optional[Detector], sink: FeedbackSink,
                 assembler: Optional[SentenceAssembler] = None,
                 expected: Optional[str] = None,
                 gateway: Optional[InferenceGateway] = None):
        """
        Initialize an idle session.

        Args:
            cfg: Pipeline configuration
            family: Gesture family this session classifies
            store: Shared model store, must be initialized before start()
            camera: Frame source, acquired on start() and released on stop()
            detector: Landmark detector tuned for `family`
            sink: Surface receiving overlay, label and outcome events
            assembler: Sentence assembler for translation (static only)
            expected: Sign the user is asked to perform in practice mode
            gateway: Classifier gateway, built from `store` when omitted
        """
        self.cfg = cfg
        self.family = family
        self.store = store
        self.camera = camera
        self.detector = detector
        self.sink = sink
        self.assembler = assembler
        self.expected = expected
        self.gateway = gateway or InferenceGateway(store, cfg.window.sequence_length)

        self.state = SessionState.IDLE
        self._stabilizer: Optional[PredictionStabilizer] = None
        self._window: Optional[TemporalWindowBuffer] = None
        self._token: Optional[CancellationToken] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._analysis_task: Optional[asyncio.Task] = None
        self._lost_task: Optional[asyncio.Future] = None
        self._generation = 0
        self._frame_index = 0
        self._last_had_hands = False

    # ---------- transitions ----------

    async def _set_state(self, state: SessionState) -> None:
        if state is self.state:
            return
        logger.info(f"Session {self.state.value} -> {state.value}")
        self.state = state
        await self.sink.on_state(state)

    async def start(self) -> None:
        """
        Idle -> CameraActive.

        Raises:
            ResourceNotReady: models or detector not loaded
            ResourceUnavailable: camera could not be opened
        """
        if self.state is not SessionState.IDLE:
            logger.debug("start() ignored, session already running")
            return

        if not self.store.is_ready or self.detector is None:
            err = ResourceNotReady("AI resources are not ready yet, please wait a moment")
            logger.warning(str(err))
            await self.sink.on_error(err)
            raise err

        try:
            self.camera.open()
        except ResourceUnavailable as e:
            logger.error(f"Camera access failed: {e}")
            await self.sink.on_error(e)
            raise

        self._generation += 1
        self._frame_index = 0
        self._last_had_hands = False
        if self.family is GestureFamily.STATIC:
            self._stabilizer = PredictionStabilizer(
                capacity=self.cfg.stabilizer.buffer_size,
                threshold=self.cfg.stabilizer.confidence_threshold
            )
        else:
            self._window = TemporalWindowBuffer(capacity=self.cfg.window.sequence_length)

        self._token = CancellationToken()
        await self._set_state(SessionState.CAMERA_ACTIVE)

        pump = FramePump(self.camera, self.detector, self.process_frame, self._on_camera_lost)
        self._pump_task = asyncio.create_task(pump.run(self._token))
        self._pump_task.add_done_callback(self._on_pump_done)

    def _on_pump_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error(f"Frame pump stopped with an error: {task.exception()!r}")
        if task is self._pump_task and self.state is not SessionState.IDLE:
            self._lost_task = asyncio.ensure_future(
                self._on_camera_lost(f"Camera failed: {task.exception()}")
            )

    async def stop(self) -> None:
        """Any state -> Idle. Releases the camera and discards all buffers."""
        if self.state is SessionState.IDLE:
            return

        # Invalidate any in-flight inference before yielding to the loop
        self._generation += 1
        if self._token is not None:
            self._token.cancel()
        previous = self.state
        self.state = SessionState.IDLE
        logger.info(f"Session {previous.value} -> {SessionState.IDLE.value}")

        task, self._pump_task = self._pump_task, None
        try:
            if task is not None and task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    logger.warning(f"Frame pump had already failed: {e!r}")
        finally:
            self.camera.release()
            self._stabilizer = None
            self._window = None
            self._last_had_hands = False
        await self.sink.on_state(SessionState.IDLE)

    async def begin_recording(self) -> bool:
        """CameraActive -> Recording (dynamic sessions only)."""
        if self.family is not GestureFamily.DYNAMIC or self.state is not SessionState.CAMERA_ACTIVE:
            logger.debug(f"begin_recording() ignored in {self.state.value}")
            return False
        self._window.clear()
        await self._set_state(SessionState.RECORDING)
        await self.sink.on_progress(0, self._window.capacity)
        return True

    async def acknowledge(self) -> bool:
        """Feedback -> CameraActive, ready for another recording."""
        if self.state is not SessionState.FEEDBACK:
            return False
        await self._set_state(SessionState.CAMERA_ACTIVE)
        return True

    # ---------- checks ----------

    async def check_sign(self) -> PracticeResult:
        """
        Point-in-time read of the stabilizer against the expected sign.

        Does not change state. Without a stable label the result is a retry:
        insufficient signal when no hands were seen, low confidence otherwise.
        """
        if self.family is not GestureFamily.STATIC:
            raise ValueError("check_sign() applies to static sessions, use begin_recording()")

        stabilizer = self._stabilizer
        latest = stabilizer.latest if stabilizer is not None else None
        if stabilizer is None or stabilizer.stable_label is None or latest is None:
            seen = stabilizer is not None and self._last_had_hands and len(stabilizer) > 0
            result = PracticeResult(
                outcome=Outcome.RETRY,
                expected=self.expected,
                label=latest.label if latest else None,
                confidence=latest.confidence if latest else None,
                reason=RetryReason.LOW_CONFIDENCE if seen else RetryReason.INSUFFICIENT_SIGNAL
            )
        else:
            result = classify_outcome(latest, self.expected, self.cfg.stabilizer.confidence_threshold)

        logger.info(f"Check sign: {result.outcome.value} (detected={result.label}, expected={self.expected})")
        await self.sink.on_outcome(result)
        return result

    async def clear_sentence(self) -> None:
        if self.assembler is None:
            return
        self.assembler.clear()
        await self.sink.on_sentence(self.assembler.text)

    # ---------- per-frame routing ----------

    async def process_frame(self, landmarks: LandmarkSet, frame: Any = None) -> None:
        """Route one detector result. Ignored while idle."""
        if self.state is SessionState.IDLE:
            return
        self._frame_index += 1

        if self.family is GestureFamily.STATIC:
            update, sentence_changed = self._route_static(landmarks)
            await self.sink.on_overlay(frame, landmarks)
            await self.sink.on_label(update)
            if sentence_changed:
                await self.sink.on_sentence(self.assembler.text)
        else:
            progress = self._route_dynamic(landmarks)
            await self.sink.on_overlay(frame, landmarks)
            if progress is not None:
                await self.sink.on_progress(*progress)

    def _route_static(self, landmarks: LandmarkSet):
        stabilizer = self._stabilizer
        had_hands = landmarks.has_hands()
        self._last_had_hands = had_hands
        stable = None

        if not had_hands:
            stabilizer.reset()
        else:
            try:
                sample = self.gateway.run_static(extract_static(landmarks), self._frame_index)
            except InferenceFailure as e:
                logger.warning(f"Frame {self._frame_index}: {e}")
                stabilizer.reset()
            else:
                stable = stabilizer.push(sample)

        sentence_changed = False
        if self.assembler is not None:
            sentence_changed = self.assembler.on_detection_frame(stable, had_hands)
            if stable is not None:
                stable = self.assembler.display_label(stable)

        latest = stabilizer.latest
        update = LabelUpdate(
            stable=stable,
            candidate=latest.label if latest else None,
            filled=len(stabilizer),
            capacity=stabilizer.capacity
        )
        return update, sentence_changed

    def _route_dynamic(self, landmarks: LandmarkSet):
        if self.state is not SessionState.RECORDING:
            return None

        window = self._window
        ready = window.push(extract_dynamic(landmarks))
        if ready is None:
            return len(window), window.capacity

        # Recording -> Analyzing happens before any await so no further push lands
        self.state = SessionState.ANALYZING
        logger.info(f"Session {SessionState.RECORDING.value} -> {SessionState.ANALYZING.value}")
        self._analysis_task = asyncio.create_task(self._analyze(ready, self._generation))
        return window.capacity, window.capacity

    async def _analyze(self, window: WindowReady, generation: int) -> None:
        if generation == self._generation:
            await self.sink.on_state(SessionState.ANALYZING)
        try:
            if not any(hands_present(f) for f in window.frames):
                raise InsufficientSignal("No hands were visible during the recording")
            sample = await asyncio.wait_for(
                self.gateway.run_dynamic(window, self._frame_index),
                timeout=self.cfg.practice.inference_timeout_s
            )
            result = classify_outcome(sample, self.expected, self.cfg.practice.low_confidence_floor)
        except asyncio.TimeoutError:
            logger.error("Dynamic inference timed out")
            result = PracticeResult(outcome=Outcome.RETRY, expected=self.expected,
                                    reason=InferenceFailure.reason)
        except SoftFailure as e:
            logger.warning(f"Could not analyze window {window.window_id}: {e}")
            result = PracticeResult(outcome=Outcome.RETRY, expected=self.expected, reason=e.reason)
        except Exception:
            logger.exception(f"Dynamic inference crashed on window {window.window_id}")
            result = PracticeResult(outcome=Outcome.RETRY, expected=self.expected,
                                    reason=InferenceFailure.reason)

        if generation != self._generation or self.state is not SessionState.ANALYZING:
            logger.info(f"Discarding result for window {window.window_id}, session moved on")
            return

        await self._set_state(SessionState.FEEDBACK)
        await self.sink.on_outcome(result)

    async def _on_camera_lost(self, message: str = "Camera stopped delivering frames") -> None:
        err = ResourceUnavailable(message)
        logger.error(str(err))
        await self.sink.on_error(err)
        await self.stop()

    @property
    def analysis_task(self) -> Optional[asyncio.Task]:
        """Most recent dynamic inference task, if any."""
        return self._analysis_task

    @property
    def window_length(self) -> int:
        return len(self._window) if self._window is not None else 0

    @property
    def stabilizer(self) -> Optional[PredictionStabilizer]:
        return self._stabilizer
