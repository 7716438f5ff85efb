"""User-facing caption settings and their translation into session parameters.

Settings arrive from an external settings store as loosely typed values:
``line_width`` may be a number, a numeric string or a preset name such as
"Medium"; ``number_of_lines`` may be anything. Everything is clamped to
usable values here so the buffer never sees invalid geometry.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from livecaptions.TranscriptBuffer import (
    DEFAULT_CHARACTER_LINE_WIDTH,
    DEFAULT_LINE_WIDTH,
    DEFAULT_NUMBER_OF_LINES,
    CaptionGeometry,
)
from livecaptions.text.ScriptConverter import ConversionMode

DEFAULT_LANGUAGE = "English"
DEFAULT_LOCALE = "en-US"

_LANGUAGE_LOCALES: dict[str, str] = {
    "English": "en-US",
    "Chinese (Hanzi)": "zh-CN",
    "Chinese (Pinyin)": "zh-CN",
    "Spanish": "es-ES",
    "French": "fr-FR",
    "German": "de-DE",
    "Italian": "it-IT",
    "Japanese": "ja-JP",
    "Korean": "ko-KR",
    "Portuguese": "pt-BR",
    "Russian": "ru-RU",
    "Hindi": "hi-IN",
    "Arabic": "ar-SA",
}

# Scripts written without spaces between words
CHARACTER_WRAP_LANGUAGES = frozenset({"Chinese (Hanzi)", "Japanese"})

_LINE_WIDTH_PRESETS: dict[str, int] = {
    "very narrow": 21,
    "narrow": 30,
    "medium": 38,
    "wide": 44,
    "very wide": 52,
}
_CHARACTER_LINE_WIDTH_PRESETS: dict[str, int] = {
    "very narrow": 7,
    "narrow": 10,
    "medium": 14,
    "wide": 18,
    "very wide": 21,
}


def language_to_locale(language: Optional[str]) -> str:
    """Map a settings language name to a recognizer locale.

    Locale tags pass through ("fr-FR" -> "fr-FR"); unknown names map to en-US.
    """
    if not language:
        return DEFAULT_LOCALE
    if language in _LANGUAGE_LOCALES:
        return _LANGUAGE_LOCALES[language]
    if language in _LANGUAGE_LOCALES.values():
        return language
    return DEFAULT_LOCALE


def is_character_wrap_language(language: Optional[str]) -> bool:
    return language in CHARACTER_WRAP_LANGUAGES


def convert_line_width(value: Any, character_wrap: bool) -> int:
    """Resolve a line width setting to a character count.

    Args:
        value: Number, numeric string or preset name
            ("Very Narrow", "Narrow", "Medium", "Wide", "Very Wide")
        character_wrap: Use the presets for character-wrapped scripts

    Returns:
        Positive line width; unknown values give the default width
    """
    default = DEFAULT_CHARACTER_LINE_WIDTH if character_wrap else DEFAULT_LINE_WIDTH
    presets = _CHARACTER_LINE_WIDTH_PRESETS if character_wrap else _LINE_WIDTH_PRESETS

    if value is None:
        return default
    if isinstance(value, str):
        preset = presets.get(value.strip().lower())
        if preset is not None:
            return preset
    return CaptionGeometry.clamped(value, DEFAULT_NUMBER_OF_LINES, character_wrap).line_width


def conversion_mode_for(language: Optional[str], convert_numerals: bool = True) -> ConversionMode:
    """Pick the transcript conversion applied for a settings language."""
    if language == "Chinese (Pinyin)":
        return ConversionMode.HANZI_TO_PINYIN
    if convert_numerals and language_to_locale(language).startswith("en"):
        return ConversionMode.NUMERALS
    return ConversionMode.NONE


@dataclass(frozen=True)
class CaptionSettings:
    """Settings snapshot for one session.

    Attributes:
        transcribe_language: Settings language name, e.g. "English"
        line_width: Raw line width setting (number or preset name)
        number_of_lines: Raw number of lines setting
    """
    transcribe_language: str = DEFAULT_LANGUAGE
    line_width: Any = None
    number_of_lines: Any = DEFAULT_NUMBER_OF_LINES

    @classmethod
    def from_dict(cls, values: Optional[Mapping[str, Any]],
                  defaults: Optional[Mapping[str, Any]] = None) -> "CaptionSettings":
        """Build settings from a settings-store mapping.

        Args:
            values: Settings as received ('transcribe_language', 'line_width',
                'number_of_lines'); missing keys use defaults
            defaults: Fallback values, typically config['defaults']
        """
        merged: dict[str, Any] = dict(defaults or {})
        merged.update({key: value for key, value in (values or {}).items() if value is not None})
        return cls(
            transcribe_language=str(merged.get("transcribe_language") or DEFAULT_LANGUAGE),
            line_width=merged.get("line_width"),
            number_of_lines=merged.get("number_of_lines", DEFAULT_NUMBER_OF_LINES),
        )

    @property
    def locale(self) -> str:
        return language_to_locale(self.transcribe_language)

    @property
    def character_wrap(self) -> bool:
        return is_character_wrap_language(self.transcribe_language)

    def geometry(self) -> CaptionGeometry:
        """Resolve presets and clamp to a valid CaptionGeometry."""
        line_width = convert_line_width(self.line_width, self.character_wrap)
        return CaptionGeometry.clamped(line_width, self.number_of_lines, self.character_wrap)
