# tests/conftest.py
import copy
from typing import Optional

import pytest

from livecaptions.ConfigLoader import DEFAULT_CONFIG
from livecaptions.Scheduler import ManualScheduler
from livecaptions.idioms.IdiomDictionary import build_dictionary

IDIOM_ROWS = [
    {"id": 1, "term": "dropped the ball", "translation_spanish": "cometió un error"},
    {"id": 2, "term": "break the ice", "translation_spanish": "romper el hielo"},
    {"id": 3, "term": "piece of cake", "translation_spanish": "pan comido"},
]


class RecordingDisplay:
    """DisplaySink that keeps every (text, duration_ms) push."""

    def __init__(self) -> None:
        self.frames: list[tuple[str, Optional[int]]] = []

    def show_text(self, text: str, duration_ms: Optional[int]) -> None:
        self.frames.append((text, duration_ms))

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.frames]

    @property
    def last(self) -> tuple[str, Optional[int]]:
        return self.frames[-1]


@pytest.fixture
def config():
    """Fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def scheduler():
    """Virtual clock starting at t=0."""
    return ManualScheduler()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def idiom_dictionary():
    return build_dictionary(IDIOM_ROWS)


class DisplayFactory:
    """display_factory for SessionRegistry: one RecordingDisplay per user."""

    def __init__(self) -> None:
        self.displays: dict[str, RecordingDisplay] = {}

    def __call__(self, user_id: str) -> RecordingDisplay:
        if user_id not in self.displays:
            self.displays[user_id] = RecordingDisplay()
        return self.displays[user_id]


@pytest.fixture
def display_factory():
    return DisplayFactory()
