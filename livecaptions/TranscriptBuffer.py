import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Any

from livecaptions.text.LineWrapper import wrap_text
from livecaptions.types import BufferState

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 30
DEFAULT_CHARACTER_LINE_WIDTH = 10
DEFAULT_NUMBER_OF_LINES = 3
DEFAULT_MAX_FINAL_TRANSCRIPTS = 30


def _coerce_positive_int(value: Any, default: int) -> int:
    """Return value as an int >= 1, or default when it can't be one."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number) or number < 1:
        return default
    return int(number)


@dataclass(frozen=True)
class CaptionGeometry:
    """Display geometry of a caption window.

    Attributes:
        line_width: Maximum characters per line (> 0)
        number_of_lines: Maximum lines in the window (>= 1)
        character_wrap: Wrap on character count (scripts without spaces)
    """
    line_width: int = DEFAULT_LINE_WIDTH
    number_of_lines: int = DEFAULT_NUMBER_OF_LINES
    character_wrap: bool = False

    @classmethod
    def clamped(cls, line_width: Any, number_of_lines: Any, character_wrap: bool = False) -> "CaptionGeometry":
        """Build geometry, replacing invalid values with defaults.

        Non-numeric, NaN, infinite or non-positive values fall back to the
        default width (10 in character-wrap mode, 30 otherwise) and 3 lines.
        """
        default_width = DEFAULT_CHARACTER_LINE_WIDTH if character_wrap else DEFAULT_LINE_WIDTH
        geometry = cls(
            line_width=_coerce_positive_int(line_width, default_width),
            number_of_lines=_coerce_positive_int(number_of_lines, DEFAULT_NUMBER_OF_LINES),
            character_wrap=bool(character_wrap),
        )
        if (geometry.line_width, geometry.number_of_lines) != (line_width, number_of_lines):
            logger.debug(f"CaptionGeometry: clamped ({line_width!r}, {number_of_lines!r}) "
                         f"to ({geometry.line_width}, {geometry.number_of_lines})")
        return geometry


@dataclass(frozen=True)
class _FinalizedTranscript:
    text: str
    lines: tuple[str, ...]


class TranscriptBuffer:
    """Turns a stream of partial/final transcripts into a bounded caption window.

    TranscriptBuffer is a per-session state machine that:
    - Keeps finalized transcripts, each wrapped once with the current geometry
    - Holds the latest partial transcript (replaced, never concatenated)
    - Renders the bottom number_of_lines lines of finalized + partial text

    Finalized transcripts are retained up to max_final_transcripts (FIFO) so
    a caller can replay them after a geometry change.

    Args:
        geometry: Initial display geometry
        max_final_transcripts: Finalized transcripts kept for replay
    """

    def __init__(self, geometry: CaptionGeometry = CaptionGeometry(),
                 max_final_transcripts: int = DEFAULT_MAX_FINAL_TRANSCRIPTS) -> None:
        self.max_final_transcripts: int = _coerce_positive_int(max_final_transcripts,
                                                               DEFAULT_MAX_FINAL_TRANSCRIPTS)
        self._geometry: CaptionGeometry = geometry
        self._finalized: deque[_FinalizedTranscript] = deque(maxlen=self.max_final_transcripts)
        self._pending_partial: str = ""
        self._state: BufferState = BufferState.EMPTY

    @property
    def geometry(self) -> CaptionGeometry:
        return self._geometry

    @property
    def state(self) -> BufferState:
        return self._state

    @property
    def pending_partial(self) -> str:
        return self._pending_partial

    @property
    def finalized_lines(self) -> list[str]:
        """Wrapped lines of all retained finalized transcripts, oldest first."""
        return [line for transcript in self._finalized for line in transcript.lines]

    @property
    def final_transcript_history(self) -> list[str]:
        """Raw text of retained finalized transcripts, oldest first."""
        return [transcript.text for transcript in self._finalized]

    def process_update(self, text: str, is_final: bool) -> str:
        """Apply one recognizer update and return the rendered window.

        Final text is wrapped and committed, clearing the pending partial.
        Blank final text commits nothing; it only clears the partial and
        re-renders. Partial text replaces the pending partial.

        Args:
            text: Transcript text; None is treated as ""
            is_final: Whether the recognizer confirmed this utterance

        Returns:
            Window of at most number_of_lines lines joined with newlines
        """
        text = (text or "").strip()

        if is_final:
            if text:
                lines = tuple(wrap_text(text, self._geometry.line_width, self._geometry.character_wrap))
                if len(self._finalized) == self._finalized.maxlen:
                    logger.debug(f"TranscriptBuffer: evicting oldest finalized transcript "
                                 f"'{self._finalized[0].text}'")
                self._finalized.append(_FinalizedTranscript(text=text, lines=lines))
            self._pending_partial = ""
            self._state = BufferState.IDLE
        else:
            self._pending_partial = text
            self._state = BufferState.ACCUMULATING

        return self.render()

    def render(self) -> str:
        """Return the current window without changing state."""
        lines = self.finalized_lines
        if self._pending_partial:
            lines.extend(wrap_text(self._pending_partial, self._geometry.line_width,
                                   self._geometry.character_wrap))
        return "\n".join(lines[-self._geometry.number_of_lines:])

    def clear(self) -> None:
        """Drop all finalized and pending text."""
        self._finalized.clear()
        self._pending_partial = ""
        self._state = BufferState.EMPTY

    def set_geometry(self, line_width: Any, number_of_lines: Any, character_wrap: bool = False) -> None:
        """Replace the display geometry and reset content.

        Wrapped lines made for the old geometry are discarded. Callers that
        want to keep history read final_transcript_history first and replay it
        through process_update(text, True).

        Args:
            line_width: Characters per line (clamped to a default if invalid)
            number_of_lines: Lines in the window (clamped to a default if invalid)
            character_wrap: Use character wrapping
        """
        self._geometry = CaptionGeometry.clamped(line_width, number_of_lines, character_wrap)
        self.clear()
