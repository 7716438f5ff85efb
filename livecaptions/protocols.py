"""Protocol definitions for the collaborators of a caption session.

This module defines structural interfaces using Python's Protocol for duck typing.
"""

from typing import Optional, Protocol

from livecaptions.types import IdiomEncounter


class DisplaySink(Protocol):
    """Destination for formatted caption windows.

    Implementations receive the already cleaned multi-line window. They must
    not block: CaptionSession calls them from the event loop thread.
    """

    def show_text(self, text: str, duration_ms: Optional[int]) -> None:
        """Show text on the display.

        Args:
            text: Multi-line caption window
            duration_ms: How long the text should stay visible; None means
                until replaced
        """
        ...


class Translator(Protocol):
    """Asynchronous translation service."""

    async def translate(self, text: str, target: str) -> str:
        """Translate text into the target language.

        Args:
            text: Source text
            target: Target language code (e.g. 'es')

        Returns:
            Translated text
        """
        ...


class EncounterStore(Protocol):
    """Asynchronous sink for idiom encounters."""

    async def record_encounter(self, encounter: IdiomEncounter) -> None:
        """Persist one encounter.

        Args:
            encounter: Matched idiom with its conversation context
        """
        ...
