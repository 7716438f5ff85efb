"""Tests for the display wire protocol codec.

Covers: display_text encode/decode, non-ASCII text, validation errors and
subscribe message decoding.
"""

import json

import pytest

from livecaptions.network.codec import decode_client_message, decode_display_message, encode_display_message
from livecaptions.network.types import WsDisplaySubscribe, WsDisplayText


class TestEncodeDisplayMessage:
    def test_fields(self) -> None:
        obj = json.loads(encode_display_message(WsDisplayText("s1", "line one\nline two", 20000)))
        assert obj == {"type": "display_text", "session_id": "s1",
                       "text": "line one\nline two", "duration_ms": 20000}

    def test_open_duration_is_null(self) -> None:
        obj = json.loads(encode_display_message(WsDisplayText("s1", "partial")))
        assert obj["duration_ms"] is None

    def test_non_ascii_is_not_escaped(self) -> None:
        assert "你好" in encode_display_message(WsDisplayText("s1", "你好"))

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(TypeError):
            encode_display_message({"text": "x"})


class TestDecodeDisplayMessage:
    def test_decodes_encoded_frame(self) -> None:
        msg = WsDisplayText("s1", "nǐ hǎo", 1000)
        assert decode_display_message(encode_display_message(msg)) == msg

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        json.dumps({"type": "other", "text": "x"}),
        json.dumps({"type": "display_text", "text": 5}),
        json.dumps({"type": "display_text", "text": "x", "duration_ms": "long"}),
        json.dumps({"type": "display_text", "text": "x", "duration_ms": True}),
    ])
    def test_invalid_frames(self, raw: str) -> None:
        with pytest.raises(ValueError):
            decode_display_message(raw)


class TestDecodeClientMessage:
    def test_subscribe(self) -> None:
        assert decode_client_message('{"type": "subscribe", "user_id": "u1"}') == WsDisplaySubscribe("u1")

    @pytest.mark.parametrize("raw, match", [
        ("{", "Invalid JSON"),
        ('"subscribe"', "JSON object"),
        ('{"user_id": "u1"}', "missing 'type'"),
        ('{"type": "subscribe", "user_id": ""}', "Invalid user_id"),
        ('{"type": "subscribe"}', "Invalid user_id"),
        ('{"type": "ping"}', "unknown message type"),
    ])
    def test_invalid_messages(self, raw: str, match: str) -> None:
        with pytest.raises(ValueError, match=match):
            decode_client_message(raw)
