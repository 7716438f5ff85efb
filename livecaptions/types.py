"""Type definitions for caption session events and side-channel messages."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class BufferState(Enum):
    """State machine states for TranscriptBuffer.

    State Transitions:
    - EMPTY: No finalized or pending text
    - ACCUMULATING: A partial transcript is pending
    - IDLE: Last update was final, nothing pending

    Transition Rules:
    EMPTY → ACCUMULATING: partial update
    EMPTY → IDLE: final update
    ACCUMULATING → ACCUMULATING: partial update (replaces pending text)
    ACCUMULATING → IDLE: final update
    IDLE → ACCUMULATING: partial update
    any → EMPTY: clear() or set_geometry()
    """
    EMPTY = auto()
    ACCUMULATING = auto()
    IDLE = auto()


class ViewMode(Enum):
    """What a caption session shows on the display.

    - CAPTIONS: running (optionally translated) captions
    - IDIOMS: only idiom cards for matched sayings
    """
    CAPTIONS = auto()
    IDIOMS = auto()

    def toggled(self) -> "ViewMode":
        """Return the other view mode."""
        return ViewMode.IDIOMS if self is ViewMode.CAPTIONS else ViewMode.CAPTIONS


class GateDecision(Enum):
    """ThrottleGate verdict for an incoming display update."""
    EMIT_NOW = auto()
    SCHEDULE = auto()


@dataclass(frozen=True)
class TranscriptionEvent:
    """Speech recognition output for one session.

    Attributes:
        is_final: True for a confirmed utterance, False for a partial one
        text: Recognized text; a partial is a full re-transcription of the
            current utterance, not a delta
        language_tag: Locale of the recognizer (e.g. 'en-US')
    """
    is_final: bool
    text: str
    language_tag: str = "en-US"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptionEvent":
        """Build an event from a recognizer payload.

        Accepts both camelCase ('isFinal', 'transcribeLanguage') and
        snake_case ('is_final', 'language_tag') keys.

        Args:
            data: Decoded payload

        Returns:
            TranscriptionEvent with missing text treated as ""

        Raises:
            ValueError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise ValueError(f"Transcription payload must be an object, got {type(data).__name__}")

        is_final = data.get("is_final", data.get("isFinal", False))
        text = data.get("text")
        language_tag = data.get("language_tag", data.get("transcribeLanguage")) or "en-US"
        return cls(
            is_final=bool(is_final),
            text=text if isinstance(text, str) else "",
            language_tag=str(language_tag),
        )


@dataclass(frozen=True)
class IdiomEntry:
    """A known saying from the idiom dictionary.

    Attributes:
        phrase: Phrase text as stored in the dictionary
        id: Dictionary term identifier
        translation: Translation shown on the idiom card
    """
    phrase: str
    id: int
    translation: str


@dataclass(frozen=True)
class IdiomEncounter:
    """Record of an idiom heard in conversation, for the learning app.

    Attributes:
        context_text: Current utterance with up to two preceding ones
        idiom_id: IdiomEntry.id of the matched saying
        location: Where the encounter happened
    """
    context_text: str
    idiom_id: int
    location: str
