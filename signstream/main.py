"""
Main application for live sign recognition.
"""
import argparse
import asyncio
import logging
import os
from collections import deque
from typing import Any, Optional

import cv2
from dotenv import load_dotenv

from .camera import OpenCVCamera
from .config import Cfg, DisplayConfig, load_config
from .errors import ResourceNotReady, ResourceUnavailable
from .landmarks import HandsDetector, HolisticDetector, draw_landmarks
from .models import ModelStore
from .sentence import SentenceAssembler
from .session import CaptureSession
from .types import GestureFamily, LabelUpdate, LandmarkSet, Outcome, PracticeResult, SessionState

logger = logging.getLogger(__name__)

OUTCOME_COLORS = {
    Outcome.CORRECT: (0, 200, 0),
    Outcome.INCORRECT: (0, 0, 220),
    Outcome.RETRY: (0, 200, 255),
}


class WindowFeedback:
    """Feedback sink rendering into an OpenCV window and collecting key presses."""

    def __init__(self, display: DisplayConfig, instructions: str):
        self.display = display
        self.instructions = instructions
        self.keys: deque = deque()
        self.label_text = "Detecting..."
        self.sentence = ""
        self.state = SessionState.IDLE
        self.progress: Optional[float] = None
        self.outcome: Optional[PracticeResult] = None
        self.error: Optional[str] = None

    async def on_overlay(self, frame: Any, landmarks: LandmarkSet) -> None:
        if frame is None:
            return
        if self.display.show_landmarks:
            frame = draw_landmarks(frame, landmarks)
        # Mirror for display only, detection runs on the raw frame
        if self.display.mirror:
            frame = cv2.flip(frame, 1)

        height, width = frame.shape[:2]
        cv2.putText(frame, self.label_text, (10, 40), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (255, 255, 255), 2)
        cv2.putText(frame, f"State: {self.state.value}", (10, 75), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1)

        if self.progress is not None and self.state is SessionState.RECORDING:
            cv2.rectangle(frame, (10, 90), (10 + int((width - 20) * self.progress), 105), (255, 128, 0), -1)

        if self.outcome is not None:
            cv2.putText(frame, self._outcome_text(self.outcome), (10, 140),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.7, OUTCOME_COLORS[self.outcome.outcome], 2)

        if self.sentence:
            cv2.putText(frame, self.sentence, (10, height - 60), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (255, 255, 0), 2)
        cv2.putText(frame, self.instructions, (10, height - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

        cv2.imshow(self.display.window_name, frame)
        key = cv2.waitKey(1) & 0xFF
        if key != 0xFF:
            self.keys.append(key)

    async def on_label(self, update: LabelUpdate) -> None:
        if update.stable:
            self.label_text = f"{update.stable.upper()} (stable)"
        elif update.candidate:
            self.label_text = f"{update.candidate.upper()}... ({update.filled}/{update.capacity})"
        elif update.filled == 0:
            self.label_text = "No hands detected..."
        else:
            self.label_text = "Detecting..."

    async def on_progress(self, collected: int, total: int) -> None:
        self.progress = collected / total if total else None

    async def on_outcome(self, result: PracticeResult) -> None:
        self.outcome = result
        logger.info(self._outcome_text(result))

    async def on_sentence(self, text: str) -> None:
        self.sentence = text

    async def on_state(self, state: SessionState) -> None:
        self.state = state
        if state is SessionState.RECORDING:
            self.outcome = None

    async def on_error(self, error: Exception) -> None:
        self.error = str(error)
        logger.error(f"❌ {error}")

    @staticmethod
    def _outcome_text(result: PracticeResult) -> str:
        pct = f"{result.confidence * 100:.1f}%" if result.confidence is not None else "n/a"
        if result.outcome is Outcome.CORRECT:
            return f"Great job! Detected \"{result.label}\" ({pct})"
        if result.outcome is Outcome.INCORRECT:
            return f"Not quite: detected \"{result.label}\" ({pct}), expected \"{result.expected}\""
        return "Could you try that again? Make sure you are clearly in frame."


class SignStreamApp:
    """Main application class wiring camera, detector, models and session."""

    def __init__(self, config: Cfg, mode: str = "translate", expected: Optional[str] = None):
        """
        Initialize the application.

        Args:
            config: Loaded configuration
            mode: "translate" (static sign-to-text), "static" or "dynamic" practice
            expected: Sign to practise, required for practice modes
        """
        self.config = config
        self.mode = mode
        self.store = ModelStore(config.models)

        family = GestureFamily.DYNAMIC if mode == "dynamic" else GestureFamily.STATIC
        if family is GestureFamily.DYNAMIC:
            self.detector = HolisticDetector(config.detectors.holistic)
            instructions = "c = record, space = dismiss, q = quit"
        else:
            self.detector = HandsDetector(config.detectors.hands)
            instructions = "x = clear, q = quit" if mode == "translate" else "c = check sign, q = quit"

        assembler = None
        if mode == "translate":
            assembler = SentenceAssembler(
                no_hand_threshold=config.sentence.no_hand_threshold,
                gap_marker=config.sentence.gap_marker,
                display_aliases=config.sentence.display_aliases
            )

        self.sink = WindowFeedback(config.display, instructions)
        self.session = CaptureSession(
            cfg=config,
            family=family,
            store=self.store,
            camera=OpenCVCamera(config.camera),
            detector=self.detector,
            sink=self.sink,
            assembler=assembler,
            expected=expected
        )

    async def _handle_key(self, key: int) -> None:
        if key == ord('q'):
            await self.session.stop()
        elif key == ord('c'):
            if self.session.family is GestureFamily.DYNAMIC:
                await self.session.begin_recording()
            elif self.mode != "translate":
                await self.session.check_sign()
        elif key == ord(' '):
            await self.session.acknowledge()
        elif key == ord('x'):
            await self.session.clear_sentence()

    async def run(self) -> None:
        """Load models, start the session and handle keys until it stops."""
        logger.info(f"Starting {self.config.display.window_name} in {self.mode} mode")
        await self.store.initialize()

        try:
            await self.session.start()
        except (ResourceNotReady, ResourceUnavailable):
            self.detector.close()
            return

        try:
            while self.session.state is not SessionState.IDLE:
                while self.sink.keys:
                    await self._handle_key(self.sink.keys.popleft())
                await asyncio.sleep(0.01)
        finally:
            await self.session.stop()
            self.detector.close()
            cv2.destroyAllWindows()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live sign recognition from a webcam")
    parser.add_argument("--mode", choices=["translate", "static", "dynamic"], default="translate")
    parser.add_argument("--expect", help="Sign to practise (static/dynamic modes)")
    parser.add_argument("--config", help="Path to a YAML config file")
    args = parser.parse_args(argv)
    if args.mode != "translate" and not args.expect:
        parser.error("--expect is required for practice modes")
    return args


async def main(argv=None):
    """Entry point for the application."""
    load_dotenv()
    args = parse_args(argv)

    config = load_config(args.config or os.getenv("SIGNSTREAM_CONFIG"))
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = SignStreamApp(config, mode=args.mode, expected=args.expect)
    try:
        await app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        await app.session.stop()


def cli():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
