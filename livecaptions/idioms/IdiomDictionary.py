"""Loading of the idiom dictionary from term rows.

A term row looks like ``{"id": 7, "term": "drop the ball",
"translation_spanish": "cometer un error"}``; ``translation`` is accepted in
place of ``translation_spanish``. The dictionary maps phrase text to an
IdiomEntry and keeps row order, which is the matcher's tie-break order.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from livecaptions.types import IdiomEntry

logger = logging.getLogger(__name__)


def build_dictionary(rows: Iterable[dict[str, Any]]) -> dict[str, IdiomEntry]:
    """Build the phrase -> IdiomEntry mapping from term rows.

    Rows missing a term, id or translation are skipped with a warning.
    A repeated term keeps its first row.

    Args:
        rows: Term rows in priority order

    Returns:
        Insertion-ordered dictionary
    """
    dictionary: dict[str, IdiomEntry] = {}
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("IdiomDictionary: skipping non-object row %r", row)
            continue

        term = row.get("term")
        term_id = row.get("id", row.get("term_id"))
        translation = row.get("translation_spanish", row.get("translation"))

        if not term or not translation or term_id is None:
            logger.warning("IdiomDictionary: skipping incomplete row %r", row)
            continue
        try:
            term_id = int(term_id)
        except (TypeError, ValueError):
            logger.warning("IdiomDictionary: skipping row with invalid id %r", row)
            continue

        if term in dictionary:
            continue
        dictionary[term] = IdiomEntry(phrase=term, id=term_id, translation=str(translation))

    return dictionary


def load_dictionary(path: Path) -> dict[str, IdiomEntry]:
    """Load the idiom dictionary from a JSON file of term rows.

    A missing or unreadable file yields an empty dictionary: sessions keep
    running, they just never match.

    Args:
        path: JSON file containing a list of term rows

    Returns:
        Insertion-ordered dictionary
    """
    path = Path(path)
    if not path.exists():
        logger.warning("IdiomDictionary: %s not found, idiom matching disabled", path)
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
    except (OSError, json.JSONDecodeError):
        logger.exception("IdiomDictionary: failed to read %s", path)
        return {}

    if not isinstance(rows, list):
        logger.warning("IdiomDictionary: %s must contain a list of rows", path)
        return {}

    dictionary = build_dictionary(rows)
    logger.info("IdiomDictionary: loaded %d terms from %s", len(dictionary), path)
    return dictionary
