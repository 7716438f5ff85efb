import logging
import re
from typing import Mapping, Optional

from livecaptions.types import IdiomEntry

logger = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^\w\s]|[\d_]")


def normalize_for_matching(text: str) -> str:
    """Reduce text to lowercase letters separated by single spaces.

    Args:
        text: Transcript or dictionary phrase

    Returns:
        Normalized text, e.g. "Drop the ball!" -> "drop the ball"
    """
    if not text:
        return ""
    return " ".join(_NON_LETTERS.sub("", text).lower().split())


class IdiomMatcher:
    """Finds known sayings in finalized transcripts.

    Dictionary phrases are normalized and compiled once into whole-word
    patterns, so "ball" matches "dropped the ball" but not "basketball".
    When several phrases match, the first in dictionary order wins.

    Args:
        dictionary: Mapping phrase -> IdiomEntry in priority order; None is
            treated as an empty dictionary
    """

    def __init__(self, dictionary: Optional[Mapping[str, IdiomEntry]]) -> None:
        self._patterns: list[tuple[re.Pattern, IdiomEntry]] = []
        for phrase, entry in (dictionary or {}).items():
            normalized = normalize_for_matching(phrase)
            if not normalized:
                logger.warning("IdiomMatcher: skipping phrase %r, nothing left after normalization", phrase)
                continue
            self._patterns.append((re.compile(rf"\b{re.escape(normalized)}\b"), entry))

    def __len__(self) -> int:
        return len(self._patterns)

    def find_match(self, finalized_text: str) -> Optional[IdiomEntry]:
        """Return the first dictionary entry contained in finalized_text.

        Args:
            finalized_text: A final transcript

        Returns:
            Matching IdiomEntry or None
        """
        normalized = normalize_for_matching(finalized_text)
        if not normalized:
            return None
        for pattern, entry in self._patterns:
            if pattern.search(normalized):
                return entry
        return None


def find_match(finalized_text: str, dictionary: Optional[Mapping[str, IdiomEntry]]) -> Optional[IdiomEntry]:
    """One-shot match without keeping compiled patterns.

    Args:
        finalized_text: A final transcript
        dictionary: Mapping phrase -> IdiomEntry; None means not loaded

    Returns:
        First matching IdiomEntry in dictionary order, or None
    """
    return IdiomMatcher(dictionary).find_match(finalized_text)
