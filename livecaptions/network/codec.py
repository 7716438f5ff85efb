"""Encode and decode caption display frames (v1).

All messages are UTF-8 JSON text frames.
"""

import json

from livecaptions.network.types import WsDisplaySubscribe, WsDisplayText


def encode_display_message(msg: WsDisplayText) -> str:
    """Encode a display message dataclass to a JSON string.

    Args:
        msg: WsDisplayText to encode.

    Returns:
        JSON string suitable for sending as a WebSocket text frame.

    Raises:
        TypeError: If msg is not a recognised message type.
    """
    if not isinstance(msg, WsDisplayText):
        raise TypeError(f"Unknown display message type: {type(msg)}")

    return json.dumps(
        {
            "type": "display_text",
            "session_id": msg.session_id,
            "text": msg.text,
            "duration_ms": msg.duration_ms,
        },
        ensure_ascii=False,
    )


def decode_display_message(text: str) -> WsDisplayText:
    """Decode a display_text JSON frame.

    Args:
        text: Raw JSON string from a WebSocket text frame.

    Returns:
        WsDisplayText.

    Raises:
        ValueError: On invalid JSON, wrong type, or invalid field values.
    """
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in display message: {exc}") from exc

    if not isinstance(obj, dict):
        raise ValueError("Display message must be a JSON object")

    if obj.get("type") != "display_text":
        raise ValueError(f"Expected type 'display_text', got {obj.get('type')!r}")

    if not isinstance(obj.get("text"), str):
        raise ValueError(f"Invalid text field: {obj.get('text')!r}")

    duration_ms = obj.get("duration_ms")
    if duration_ms is not None and (isinstance(duration_ms, bool) or not isinstance(duration_ms, int)):
        raise ValueError(f"Invalid duration_ms: {duration_ms!r}")

    return WsDisplayText(
        session_id=str(obj.get("session_id", "")),
        text=obj["text"],
        duration_ms=duration_ms,
    )


def decode_client_message(text: str) -> WsDisplaySubscribe:
    """Decode a JSON text frame from a display client.

    Args:
        text: Raw JSON string from a WebSocket text frame.

    Returns:
        WsDisplaySubscribe (only client message type in v1).

    Raises:
        ValueError: On invalid JSON, missing/unknown type, or missing user_id.
    """
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in client message: {exc}") from exc

    if not isinstance(obj, dict):
        raise ValueError("Client message must be a JSON object")

    msg_type = obj.get("type")
    if msg_type is None:
        raise ValueError("Client message missing 'type' field")

    if msg_type == "subscribe":
        user_id = obj.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError(f"Invalid user_id: {user_id!r}")
        return WsDisplaySubscribe(user_id=user_id)

    raise ValueError(f"unknown message type: {msg_type!r}")
