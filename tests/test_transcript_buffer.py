"""Tests for TranscriptBuffer and CaptionGeometry.

Covers the window bound, line width bound, partial replacement, history cap,
state transitions, geometry clamping and the Chinese character-wrap scenario.
"""

import math

import pytest

from livecaptions.TranscriptBuffer import CaptionGeometry, TranscriptBuffer
from livecaptions.types import BufferState


def _buffer(line_width: int = 30, number_of_lines: int = 3, character_wrap: bool = False,
            max_final_transcripts: int = 30) -> TranscriptBuffer:
    return TranscriptBuffer(
        geometry=CaptionGeometry(line_width, number_of_lines, character_wrap),
        max_final_transcripts=max_final_transcripts,
    )


class TestCaptionGeometry:
    def test_defaults(self) -> None:
        geometry = CaptionGeometry()
        assert (geometry.line_width, geometry.number_of_lines, geometry.character_wrap) == (30, 3, False)

    @pytest.mark.parametrize("line_width, number_of_lines", [
        (0, 0),
        (-5, -1),
        (math.nan, math.nan),
        ("abc", None),
        (True, False),
        (math.inf, math.inf),
    ])
    def test_invalid_values_fall_back_to_defaults(self, line_width, number_of_lines) -> None:
        geometry = CaptionGeometry.clamped(line_width, number_of_lines)
        assert geometry.line_width == 30
        assert geometry.number_of_lines == 3

    def test_character_wrap_default_width(self) -> None:
        assert CaptionGeometry.clamped(None, 2, character_wrap=True).line_width == 10

    def test_numeric_strings_and_floats_are_accepted(self) -> None:
        geometry = CaptionGeometry.clamped("25", 2.7)
        assert geometry.line_width == 25
        assert geometry.number_of_lines == 2


class TestProcessUpdate:
    def test_partial_then_final(self) -> None:
        buffer = _buffer()
        assert buffer.process_update("hello wor", False) == "hello wor"
        assert buffer.state is BufferState.ACCUMULATING
        assert buffer.process_update("hello world", True) == "hello world"
        assert buffer.state is BufferState.IDLE
        assert buffer.pending_partial == ""

    def test_partial_replaces_previous_partial(self) -> None:
        buffer = _buffer()
        buffer.process_update("the cat", False)
        window = buffer.process_update("the cats sat", False)
        assert window == "the cats sat"
        assert "the cat\n" not in window

    def test_partial_renders_below_finalized_lines(self) -> None:
        buffer = _buffer()
        buffer.process_update("first sentence", True)
        assert buffer.process_update("second", False) == "first sentence\nsecond"

    def test_text_is_stripped(self) -> None:
        buffer = _buffer()
        assert buffer.process_update("   spaced out   ", True) == "spaced out"

    def test_none_text_is_empty(self) -> None:
        buffer = _buffer()
        assert buffer.process_update(None, False) == ""

    def test_blank_final_commits_nothing(self) -> None:
        buffer = _buffer()
        buffer.process_update("kept", True)
        buffer.process_update("dropped partial", False)
        assert buffer.process_update("", True) == "kept"
        assert buffer.final_transcript_history == ["kept"]

    def test_window_never_exceeds_number_of_lines(self) -> None:
        buffer = _buffer(line_width=12, number_of_lines=2)
        for i in range(20):
            window = buffer.process_update(f"utterance number {i} is here", i % 3 == 0)
            assert len(window.split("\n")) <= 2
            assert all(len(line) <= 12 for line in window.split("\n"))

    def test_window_shows_bottom_lines(self) -> None:
        buffer = _buffer(line_width=10, number_of_lines=2)
        buffer.process_update("one", True)
        buffer.process_update("two", True)
        assert buffer.process_update("three", True) == "two\nthree"

    def test_final_transcript_history_is_capped(self) -> None:
        buffer = _buffer(max_final_transcripts=30)
        for i in range(35):
            buffer.process_update(f"line {i}", True)
        history = buffer.final_transcript_history
        assert len(history) == 30
        assert history[0] == "line 5"
        assert history[-1] == "line 34"

    def test_each_final_is_wrapped_separately(self) -> None:
        buffer = _buffer(line_width=20, number_of_lines=5)
        buffer.process_update("short", True)
        buffer.process_update("also", True)
        assert buffer.finalized_lines == ["short", "also"]

    def test_render_does_not_change_state(self) -> None:
        buffer = _buffer()
        buffer.process_update("partial", False)
        assert buffer.render() == buffer.render() == "partial"
        assert buffer.state is BufferState.ACCUMULATING


class TestChineseCharacterWrap:
    def test_hanzi_session(self) -> None:
        buffer = _buffer(line_width=4, number_of_lines=2, character_wrap=True)
        buffer.process_update("你好", False)
        window = buffer.process_update("你好世界", True)
        assert window == "你好世界"

        buffer.process_update("再", False)
        window = buffer.process_update("再见", True)
        assert window == "你好世界\n再见"

    def test_long_hanzi_keeps_last_lines(self) -> None:
        buffer = _buffer(line_width=3, number_of_lines=2, character_wrap=True)
        assert buffer.process_update("一二三四五六七", True) == "四五六\n七"


class TestClearAndGeometry:
    def test_clear(self) -> None:
        buffer = _buffer()
        buffer.process_update("a", True)
        buffer.process_update("b", False)
        buffer.clear()
        assert buffer.render() == ""
        assert buffer.state is BufferState.EMPTY
        assert buffer.final_transcript_history == []

    def test_set_geometry_clamps_and_resets(self) -> None:
        buffer = _buffer()
        buffer.process_update("something", True)
        buffer.set_geometry(0, -2, character_wrap=True)
        assert buffer.geometry == CaptionGeometry(10, 3, True)
        assert buffer.render() == ""
        assert buffer.state is BufferState.EMPTY

    def test_history_replay_rewraps_with_new_width(self) -> None:
        buffer = _buffer(line_width=30, number_of_lines=5)
        buffer.process_update("the quick brown fox", True)
        history = buffer.final_transcript_history

        buffer.set_geometry(10, 5)
        for text in history:
            buffer.process_update(text, True)
        assert buffer.render() == "the quick\nbrown fox"

    def test_invalid_max_final_transcripts_uses_default(self) -> None:
        assert TranscriptBuffer(max_final_transcripts=0).max_final_transcripts == 30
