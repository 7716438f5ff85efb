"""Configuration loading for the caption engine.

The config is a JSON file (see config/captions_config.json) merged over
DEFAULT_CONFIG, and is passed around as a plain dict with these sections:
- captions: buffer, debounce and timer parameters
- defaults: settings used until the settings store provides values
- idioms: location of the idiom dictionary
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CONFIG: Dict[str, Any] = {
    "captions": {
        "max_final_transcripts": 30,
        "debounce_interval_ms": 400,
        "final_display_duration_ms": 20000,
        "inactivity_timeout_ms": 40000,
        "inactivity_clear_duration_ms": 1000,
        "idiom_display_ms": 5000,
        "convert_numerals": True,
        "translation_target": "es",
        "encounter_location": "unknown",
    },
    "defaults": {
        "transcribe_language": "English",
        "line_width": None,
        "number_of_lines": 3,
    },
    "idioms": {
        "dictionary_path": "config/idioms.json",
    },
}

_POSITIVE_INT_KEYS = (
    "max_final_transcripts",
    "final_display_duration_ms",
    "inactivity_timeout_ms",
    "inactivity_clear_duration_ms",
    "idiom_display_ms",
)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """Check the values the session relies on.

    Raises:
        ValueError: If a timing or size value is not a positive integer, or
            debounce_interval_ms is negative
    """
    captions = config["captions"]
    for key in _POSITIVE_INT_KEYS:
        value = captions.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"captions.{key} must be a positive integer, got {value!r}")

    interval = captions.get("debounce_interval_ms")
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 0:
        raise ValueError(f"captions.debounce_interval_ms must be >= 0, got {interval!r}")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from a JSON file merged over the defaults.

    Args:
        config_path: Path to captions_config.json; None returns the defaults

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config_path doesn't exist
        ValueError: If the file is not a JSON object or has invalid values
    """
    if config_path is None:
        config = copy.deepcopy(DEFAULT_CONFIG)
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                loaded = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {config_path}: {exc}") from exc

        if not isinstance(loaded, dict):
            raise ValueError(f"Config root must be an object: {config_path}")
        config = _deep_merge(DEFAULT_CONFIG, loaded)
        logging.debug(f"Config loaded from {path}")

    validate_config(config)
    return config
