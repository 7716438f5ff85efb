"""WebSocket wire message types for pushing captions to a display client (v1)."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class WsDisplayText:
    """JSON display_text frame sent from server to the glasses client.

    Args:
        session_id: Caption session the window belongs to.
        text: Multi-line caption window (lines separated by ``\\n``).
        duration_ms: How long to show the text; None means until replaced.
    """

    session_id: str
    text: str
    duration_ms: Optional[int] = None


@dataclass
class WsDisplaySubscribe:
    """JSON subscribe frame sent by a display client right after connecting.

    Args:
        user_id: Speaker whose captions the client wants to show.
    """

    user_id: str
