"""Tests for numeral and pinyin/hanzi conversion."""

from unittest.mock import patch

import pytest

from livecaptions.text.ScriptConverter import (
    ConversionMode,
    hanzi_to_pinyin,
    normalize,
    numerals_to_digits,
    pinyin_to_hanzi,
)


class TestNumeralsToDigits:
    @pytest.mark.parametrize("text, expected", [
        ("twenty-one", "21"),
        ("seven", "7"),
        ("zero", "0"),
        ("fifteen", "15"),
        ("one hundred and five", "105"),
        ("two thousand three hundred", "2300"),
        ("three million", "3000000"),
        ("forty two", "42"),
    ])
    def test_single_numbers(self, text: str, expected: str) -> None:
        assert numerals_to_digits(text) == expected

    def test_numbers_inside_sentence(self) -> None:
        assert numerals_to_digits("we have twenty-one slides") == "we have 21 slides"

    def test_punctuation_ends_number_and_is_kept(self) -> None:
        assert numerals_to_digits("three, four") == "3, 4"
        assert numerals_to_digits("I counted seven.") == "I counted 7."

    def test_capitalized_number_words(self) -> None:
        assert numerals_to_digits("Twenty people") == "20 people"

    def test_dangling_and_stays_a_word(self) -> None:
        assert numerals_to_digits("five and six") == "5 and 6"

    def test_and_alone_is_untouched(self) -> None:
        assert numerals_to_digits("salt and pepper") == "salt and pepper"

    def test_text_without_numbers_is_returned_unchanged(self) -> None:
        text = "hello   world"
        assert numerals_to_digits(text) is text

    def test_invalid_sequence_splits_into_numbers(self) -> None:
        # "twelve" cannot follow "seven" inside one number
        assert numerals_to_digits("seven twelve") == "7 12"

    def test_empty(self) -> None:
        assert numerals_to_digits("") == ""


class TestPinyinToHanzi:
    def test_separate_syllables(self) -> None:
        assert pinyin_to_hanzi("ni hao") == "你好"

    def test_joined_syllables(self) -> None:
        assert pinyin_to_hanzi("nihao") == "你好"

    def test_tone_marks_and_digits_are_ignored(self) -> None:
        assert pinyin_to_hanzi("nǐ hǎo") == "你好"
        assert pinyin_to_hanzi("ni3 hao3") == "你好"

    def test_sentence(self) -> None:
        assert pinyin_to_hanzi("wo ai ni") == "我爱你"

    def test_unknown_tokens_pass_through(self) -> None:
        assert pinyin_to_hanzi("hello ni hao") == "hello 你好"

    def test_trailing_punctuation_kept(self) -> None:
        assert pinyin_to_hanzi("ni hao!") == "你好!"


class TestHanziToPinyin:
    def test_greeting(self) -> None:
        assert hanzi_to_pinyin("你好世界") == "nǐ hǎo shì jiè"

    def test_unknown_characters_pass_through(self) -> None:
        assert hanzi_to_pinyin("你好!") == "nǐ hǎo!"

    def test_latin_after_syllable_gets_space(self) -> None:
        assert hanzi_to_pinyin("你好AI") == "nǐ hǎo AI"

    def test_empty(self) -> None:
        assert hanzi_to_pinyin("") == ""


class TestNormalize:
    def test_none_mode_returns_input(self) -> None:
        assert normalize("twenty-one", ConversionMode.NONE) == "twenty-one"

    def test_none_text_returns_empty(self) -> None:
        assert normalize(None, ConversionMode.NUMERALS) == ""

    def test_dispatches_by_mode(self) -> None:
        assert normalize("twenty-one", ConversionMode.NUMERALS) == "21"
        assert normalize("ni hao", ConversionMode.PINYIN_TO_HANZI) == "你好"
        assert normalize("你好", ConversionMode.HANZI_TO_PINYIN) == "nǐ hǎo"

    def test_failure_returns_input(self) -> None:
        with patch("livecaptions.text.ScriptConverter.numerals_to_digits",
                   side_effect=RuntimeError("boom")):
            assert normalize("twenty-one", ConversionMode.NUMERALS) == "twenty-one"
