"""
Sentence assembly from stabilized labels.
"""
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class SentenceAssembler:
    """
    Builds an append-only token stream from a stream of stable labels.

    Features:
    - A stable label is appended once, no matter how many frames it is held
    - A single gap marker after sustained loss of hands
    - A trailing gap is dropped when the next real symbol arrives
    """

    def __init__(self, no_hand_threshold: int = 20, gap_marker: str = " ",
                 display_aliases: Optional[Dict[str, str]] = None):
        self.no_hand_threshold = no_hand_threshold
        self.gap_marker = gap_marker
        self.display_aliases = {k.lower(): v for k, v in (display_aliases or {}).items()}

        self._tokens: List[str] = []
        self.last_appended: Optional[str] = None
        self.no_hand_frames = 0

    def on_detection_frame(self, label: Optional[str], had_hands: bool) -> bool:
        """
        Feed one processed frame.

        Args:
            label: Stable label for this frame, or None
            had_hands: Whether the detector found any hand in this frame

        Returns:
            True if the sentence changed
        """
        if not had_hands:
            return self._on_no_hands()

        self.no_hand_frames = 0
        if not label:
            return False

        token = self.display_label(label)
        if token == self.last_appended:
            return False

        if self._tokens and self._tokens[-1] == self.gap_marker:
            self._tokens.pop()
        self._tokens.append(token)
        self.last_appended = token
        logger.debug("Appended %r -> %r", token, self.text)
        return True

    def _on_no_hands(self) -> bool:
        self.no_hand_frames += 1
        if (self.no_hand_frames >= self.no_hand_threshold
                and self._tokens
                and self.last_appended != self.gap_marker):
            self._tokens.append(self.gap_marker)
            self.last_appended = self.gap_marker
            self.no_hand_frames = 0
            return True
        return False

    def display_label(self, label: str) -> str:
        """Map a classifier label to the symbol shown to the user."""
        return self.display_aliases.get(label.lower(), label)

    def clear(self) -> None:
        self._tokens = []
        self.last_appended = None
        self.no_hand_frames = 0

    @property
    def tokens(self) -> List[str]:
        return list(self._tokens)

    @property
    def text(self) -> str:
        return "".join(self._tokens)
