"""Tests for idiom detection in finalized transcripts."""

from livecaptions.idioms.IdiomDictionary import build_dictionary
from livecaptions.idioms.IdiomMatcher import IdiomMatcher, find_match, normalize_for_matching


class TestNormalizeForMatching:
    def test_strips_punctuation_digits_and_case(self) -> None:
        assert normalize_for_matching("  Drop the Ball! 42 ") == "drop the ball"

    def test_apostrophes_are_removed(self) -> None:
        assert normalize_for_matching("Don't") == "dont"

    def test_empty(self) -> None:
        assert normalize_for_matching("") == ""
        assert normalize_for_matching(None) == ""


class TestIdiomMatcher:
    def test_matches_phrase_in_sentence(self, idiom_dictionary) -> None:
        match = IdiomMatcher(idiom_dictionary).find_match("Yeah, I totally dropped the ball yesterday.")
        assert match is not None
        assert match.id == 1
        assert match.translation == "cometió un error"

    def test_whole_word_boundaries(self) -> None:
        dictionary = build_dictionary([{"id": 9, "term": "ball", "translation": "pelota"}])
        matcher = IdiomMatcher(dictionary)
        assert matcher.find_match("He dropped the ball").id == 9
        assert matcher.find_match("We played basketball") is None

    def test_first_match_in_dictionary_order_wins(self) -> None:
        dictionary = build_dictionary([
            {"id": 1, "term": "break the ice", "translation": "romper el hielo"},
            {"id": 2, "term": "piece of cake", "translation": "pan comido"},
        ])
        match = IdiomMatcher(dictionary).find_match("piece of cake, let's break the ice")
        assert match.id == 1

    def test_phrase_punctuation_is_normalized(self) -> None:
        dictionary = build_dictionary([{"id": 4, "term": "Piece of cake!", "translation": "pan comido"}])
        assert IdiomMatcher(dictionary).find_match("it was a piece of cake").id == 4

    def test_no_match(self, idiom_dictionary) -> None:
        assert IdiomMatcher(idiom_dictionary).find_match("nothing to see here") is None
        assert IdiomMatcher(idiom_dictionary).find_match("") is None

    def test_empty_phrase_is_skipped(self) -> None:
        dictionary = build_dictionary([{"id": 5, "term": "!!!", "translation": "nada"}])
        matcher = IdiomMatcher(dictionary)
        assert len(matcher) == 0
        assert matcher.find_match("!!!") is None


class TestFindMatch:
    def test_none_dictionary_never_matches(self) -> None:
        assert find_match("dropped the ball", None) is None

    def test_one_shot_match(self, idiom_dictionary) -> None:
        assert find_match("Time to BREAK THE ICE.", idiom_dictionary).id == 2
