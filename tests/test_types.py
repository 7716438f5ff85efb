"""Tests for event parsing and enums."""

import pytest

from livecaptions.types import TranscriptionEvent, ViewMode


class TestTranscriptionEventFromDict:
    def test_camel_case_payload(self) -> None:
        event = TranscriptionEvent.from_dict({"isFinal": True, "text": "hi", "transcribeLanguage": "zh-CN"})
        assert event == TranscriptionEvent(is_final=True, text="hi", language_tag="zh-CN")

    def test_snake_case_payload(self) -> None:
        event = TranscriptionEvent.from_dict({"is_final": False, "text": "hi", "language_tag": "fr-FR"})
        assert event == TranscriptionEvent(is_final=False, text="hi", language_tag="fr-FR")

    def test_missing_fields_use_defaults(self) -> None:
        event = TranscriptionEvent.from_dict({})
        assert event == TranscriptionEvent(is_final=False, text="", language_tag="en-US")

    def test_non_string_text_is_empty(self) -> None:
        assert TranscriptionEvent.from_dict({"text": None}).text == ""
        assert TranscriptionEvent.from_dict({"text": 42}).text == ""

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ValueError):
            TranscriptionEvent.from_dict(["text"])


class TestViewMode:
    def test_toggled(self) -> None:
        assert ViewMode.CAPTIONS.toggled() is ViewMode.IDIOMS
        assert ViewMode.IDIOMS.toggled() is ViewMode.CAPTIONS
