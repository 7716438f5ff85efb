"""Per-speaker caption session: owns the buffer, the gate and all timers.

A CaptionSession is created when a speaking session starts and closed when it
stops. It is the caller-side policy around the formatting core:
- converts transcripts (numerals, pinyin) before buffering
- feeds the TranscriptBuffer and pushes windows through the ThrottleGate
- runs idiom matching on final transcripts and records encounters
- translates final transcripts when a translator is configured
- clears the display after inactivity and after an idiom card times out
"""

import asyncio
import logging
import re
from collections import deque
from typing import Any, Coroutine, Mapping, Optional

from livecaptions.CaptionSettings import CaptionSettings, conversion_mode_for
from livecaptions.Scheduler import DeferredAction, Scheduler
from livecaptions.ThrottleGate import ThrottleGate
from livecaptions.TranscriptBuffer import TranscriptBuffer
from livecaptions.idioms.IdiomMatcher import IdiomMatcher, normalize_for_matching
from livecaptions.protocols import DisplaySink, EncounterStore, Translator
from livecaptions.text.ScriptConverter import ConversionMode, normalize
from livecaptions.types import IdiomEncounter, IdiomEntry, TranscriptionEvent, ViewMode

logger = logging.getLogger(__name__)

SWITCH_MODE_COMMAND = "switch mode"
_CONTEXT_UTTERANCES = 2
_IDIOM_RULE_MAX = 42
_LEADING_PUNCTUATION = re.compile(r"^[.,;:!?。，；：！？]+")


def clean_display_text(text: str) -> str:
    """Strip leading Western/Chinese punctuation and surrounding whitespace."""
    return _LEADING_PUNCTUATION.sub("", text or "").strip()


def format_idiom_card(entry: IdiomEntry) -> str:
    """Render an idiom card: phrase, dash rule, translation."""
    rule = "-" * min(_IDIOM_RULE_MAX, len(entry.translation))
    return f"{entry.phrase}\n{rule}\n{entry.translation}"


class CaptionSession:
    """Caption pipeline for one speaker.

    Single-threaded: every method must be called from the thread running the
    scheduler's event loop. Translation and encounter recording run as asyncio
    tasks; their results are applied only while the session is open.
    Translated finals are committed in arrival order, whichever translation
    finishes first.

    Idiom matching runs in both view modes, so encounters are recorded while
    captioning as well. Only IDIOMS mode shows the idiom card; CAPTIONS mode
    shows the sentence as an ordinary caption.

    Args:
        session_id: Identifier of the speaking session
        user_id: Speaker the session belongs to
        display: Sink receiving cleaned caption windows
        scheduler: Clock and timer source
        config: Application configuration dict (captions section required)
        idiom_dictionary: Mapping phrase -> IdiomEntry; None disables matching
        translator: Optional translation service for final transcripts
        encounter_store: Optional sink for idiom encounters
        settings: Initial settings; applied (and displayed) immediately
    """

    def __init__(
        self,
        session_id: str,
        user_id: str,
        display: DisplaySink,
        scheduler: Scheduler,
        config: dict,
        idiom_dictionary: Optional[Mapping[str, IdiomEntry]] = None,
        translator: Optional[Translator] = None,
        encounter_store: Optional[EncounterStore] = None,
        settings: Optional[CaptionSettings] = None,
    ) -> None:
        captions = config["captions"]
        self.session_id: str = session_id
        self.user_id: str = user_id
        self._display: DisplaySink = display
        self._scheduler: Scheduler = scheduler
        self._translator: Optional[Translator] = translator
        self._encounter_store: Optional[EncounterStore] = encounter_store
        self._matcher: IdiomMatcher = IdiomMatcher(idiom_dictionary)

        self._final_duration_ms: int = captions["final_display_duration_ms"]
        self._inactivity_timeout: float = captions["inactivity_timeout_ms"] / 1000.0
        self._inactivity_clear_duration_ms: int = captions["inactivity_clear_duration_ms"]
        self._idiom_display_time: float = captions["idiom_display_ms"] / 1000.0
        self._convert_numerals: bool = bool(captions.get("convert_numerals", True))
        self._translation_target: str = captions.get("translation_target") or "es"
        self._location: str = captions.get("encounter_location") or "unknown"

        self.buffer: TranscriptBuffer = TranscriptBuffer(
            max_final_transcripts=captions["max_final_transcripts"]
        )
        self.gate: ThrottleGate = ThrottleGate(
            scheduler=scheduler,
            emit=self._show,
            interval_ms=captions["debounce_interval_ms"],
        )

        self._view_mode: ViewMode = ViewMode.CAPTIONS
        self._settings: Optional[CaptionSettings] = None
        self._conversion_mode: ConversionMode = ConversionMode.NONE

        self._inactivity_timer: Optional[DeferredAction] = None
        self._idiom_clear_timer: Optional[DeferredAction] = None
        self._tasks: set[asyncio.Task] = set()
        # Translations in the order their finals arrived
        self._pending_translations: deque[asyncio.Task] = deque()

        # Distinct finalized utterances, for encounter context
        self._recent_utterances: deque[str] = deque(maxlen=_CONTEXT_UTTERANCES)
        self._seen_utterances: set[str] = set()

        self._closed: bool = False

        if settings is not None:
            self.apply_settings(settings)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def settings(self) -> Optional[CaptionSettings]:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def window(self) -> str:
        """Current caption window."""
        return self.buffer.render()

    def switch_view_mode(self) -> ViewMode:
        """Toggle between CAPTIONS and IDIOMS and start from a blank display."""
        self._view_mode = self._view_mode.toggled()
        self.buffer.clear()
        self._cancel_timer("_idiom_clear_timer")
        self.gate.submit("", True)
        logger.info("CaptionSession[%s]: view mode -> %s", self.session_id, self._view_mode.name)
        return self._view_mode

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def apply_settings(self, settings: CaptionSettings) -> None:
        """Switch to new settings, replaying history unless the language changed.

        Args:
            settings: New settings snapshot
        """
        if self._closed:
            return

        language_changed = (self._settings is not None
                            and self._settings.transcribe_language != settings.transcribe_language)
        history = [] if language_changed else self.buffer.final_transcript_history

        geometry = settings.geometry()
        self.buffer.set_geometry(geometry.line_width, geometry.number_of_lines, geometry.character_wrap)
        for transcript in history:
            self.buffer.process_update(transcript, True)

        self._settings = settings
        self._conversion_mode = conversion_mode_for(settings.transcribe_language, self._convert_numerals)

        if language_changed:
            logger.info("CaptionSession[%s]: language changed, transcript history cleared", self.session_id)
        else:
            logger.info("CaptionSession[%s]: preserved %d transcripts after settings change",
                        self.session_id, len(history))
        logger.debug("CaptionSession[%s]: locale=%s line_width=%d lines=%d character_wrap=%s",
                     self.session_id, settings.locale, geometry.line_width,
                     geometry.number_of_lines, geometry.character_wrap)

        self.gate.submit(self.buffer.process_update("", True), True)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle_event(self, event: TranscriptionEvent) -> None:
        """Process one transcription event.

        Args:
            event: Partial or final recognizer result
        """
        if self._closed:
            logger.debug("CaptionSession[%s]: ignoring event after close", self.session_id)
            return

        self._restart_inactivity_timer()

        if event.is_final:
            self._handle_final(event)
        else:
            self._handle_partial(event)

    def _handle_partial(self, event: TranscriptionEvent) -> None:
        text = normalize(event.text, self._conversion_for(event))
        window = self.buffer.process_update(text, False)
        if self._view_mode is ViewMode.CAPTIONS:
            self.gate.submit(window, False)

    def _handle_final(self, event: TranscriptionEvent) -> None:
        text = (event.text or "").strip()
        context = self._remember_utterance(text)

        if SWITCH_MODE_COMMAND in normalize_for_matching(text):
            self.switch_view_mode()
            return

        match = self._matcher.find_match(text) if text else None
        if match is not None:
            logger.info("CaptionSession[%s]: idiom '%s' (id=%d) in '%s'",
                        self.session_id, match.phrase, match.id, text)
            encounter = IdiomEncounter(context_text=context, idiom_id=match.id, location=self._location)
            if self._encounter_store is not None:
                self._spawn(self._record_encounter(encounter), "encounter recording")

        if self._view_mode is ViewMode.IDIOMS:
            if match is not None:
                self._show_idiom_card(match)
            return

        if self._translator is not None and text and self._queue_translation(text):
            return
        self._commit_final(normalize(text, self._conversion_for(event)))

    def _commit_final(self, text: str) -> None:
        window = self.buffer.process_update(text, True)
        self.gate.submit(window, True)

    def _conversion_for(self, event: TranscriptionEvent) -> ConversionMode:
        """Apply the session's conversion only to input in the matching script."""
        tag = (event.language_tag or "").lower()
        if self._conversion_mode is ConversionMode.HANZI_TO_PINYIN and not tag.startswith("zh"):
            return ConversionMode.NONE
        if self._conversion_mode is ConversionMode.NUMERALS and not tag.startswith("en"):
            return ConversionMode.NONE
        return self._conversion_mode

    def _remember_utterance(self, text: str) -> str:
        """Return encounter context for text and remember it if unseen.

        Context is up to two preceding distinct utterances plus text.
        """
        context = " ".join([*self._recent_utterances, text]).strip()
        if text and text not in self._seen_utterances:
            self._seen_utterances.add(text)
            self._recent_utterances.append(text)
        return context

    # ------------------------------------------------------------------
    # Idiom cards
    # ------------------------------------------------------------------

    def _show_idiom_card(self, entry: IdiomEntry) -> None:
        self._cancel_timer("_idiom_clear_timer")
        self.gate.submit(format_idiom_card(entry), True)
        self._idiom_clear_timer = self._scheduler.call_later(self._idiom_display_time, self._clear_idiom_card)

    def _clear_idiom_card(self) -> None:
        self._idiom_clear_timer = None
        self.gate.submit("", True)

    # ------------------------------------------------------------------
    # Inactivity
    # ------------------------------------------------------------------

    def _restart_inactivity_timer(self) -> None:
        self._cancel_timer("_inactivity_timer")
        self._inactivity_timer = self._scheduler.call_later(self._inactivity_timeout, self._on_inactivity)

    def _on_inactivity(self) -> None:
        self._inactivity_timer = None
        logger.debug("CaptionSession[%s]: inactivity timeout, clearing transcript", self.session_id)
        self.buffer.clear()
        self.gate.cancel()
        self._display.show_text("", self._inactivity_clear_duration_ms)

    def _cancel_timer(self, attribute: str) -> None:
        timer: Optional[DeferredAction] = getattr(self, attribute)
        if timer is not None:
            timer.cancel()
            setattr(self, attribute, None)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _show(self, text: str, is_final: bool) -> None:
        duration_ms = self._final_duration_ms if is_final else None
        self._display.show_text(clean_display_text(text), duration_ms)

    # ------------------------------------------------------------------
    # Async side calls
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> Optional[asyncio.Task]:
        """Run coro as a task owned by this session.

        Returns:
            The task, or None when no event loop is running (coro is closed)
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("CaptionSession[%s]: no running event loop, skipping %s",
                           self.session_id, description)
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _queue_translation(self, text: str) -> bool:
        """Start translating a final transcript and reserve its place in line.

        Returns:
            False if the translation could not be started
        """
        task = self._spawn(self._translate(text), "translation")
        if task is None:
            return False
        self._pending_translations.append(task)
        task.add_done_callback(self._commit_translations)
        return True

    async def _translate(self, text: str) -> str:
        try:
            translated = await self._translator.translate(text, self._translation_target)
        except Exception:
            logger.exception("CaptionSession[%s]: translation failed, showing original text",
                             self.session_id)
            return text
        return translated or text

    def _commit_translations(self, _task: Optional[asyncio.Task] = None) -> None:
        """Commit finished translations from the head of the line.

        A translation that finishes early waits for every earlier final, so
        finals are committed in the order they were spoken.
        """
        while self._pending_translations and self._pending_translations[0].done():
            task = self._pending_translations.popleft()
            if self._closed or task.cancelled():
                continue
            self._commit_final(task.result())

    async def _record_encounter(self, encounter: IdiomEncounter) -> None:
        try:
            await self._encounter_store.record_encounter(encounter)
        except Exception:
            logger.exception("CaptionSession[%s]: failed to record encounter for idiom %d",
                             self.session_id, encounter.idiom_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel timers and in-flight side calls; later events are ignored.

        Calling close() twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        self.gate.cancel()
        self._cancel_timer("_inactivity_timer")
        self._cancel_timer("_idiom_clear_timer")
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._pending_translations.clear()
        logger.info("CaptionSession[%s]: closed", self.session_id)
