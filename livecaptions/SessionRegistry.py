"""Session lifecycle coordinator: creates, routes to and destroys CaptionSessions.

Holds the only mapping from user id to active session. Each user has at
most one active session; starting a new one closes the previous one.
"""

import logging
import uuid
from typing import Callable, Mapping, Optional

from livecaptions.CaptionSession import CaptionSession
from livecaptions.CaptionSettings import CaptionSettings
from livecaptions.Scheduler import Scheduler
from livecaptions.protocols import DisplaySink, EncounterStore, Translator
from livecaptions.types import IdiomEntry, TranscriptionEvent

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates and destroys CaptionSession objects; tracks active sessions.

    Args:
        scheduler: Timer source shared by all sessions (sessions never share timers).
        config: Application configuration dict.
        display_factory: Returns the DisplaySink for a user id.
        idiom_dictionary: Dictionary handed to every new session.
        translator: Optional translation service for final transcripts.
        encounter_store: Optional sink for idiom encounters.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: dict,
        display_factory: Callable[[str], DisplaySink],
        idiom_dictionary: Optional[Mapping[str, IdiomEntry]] = None,
        translator: Optional[Translator] = None,
        encounter_store: Optional[EncounterStore] = None,
    ) -> None:
        self._scheduler = scheduler
        self._config = config
        self._display_factory = display_factory
        self._idiom_dictionary = idiom_dictionary
        self._translator = translator
        self._encounter_store = encounter_store

        self._sessions: dict[str, CaptionSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get_session(self, user_id: str) -> Optional[CaptionSession]:
        return self._sessions.get(user_id)

    def default_settings(self) -> CaptionSettings:
        return CaptionSettings.from_dict(None, self._config.get("defaults"))

    def start_session(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        settings: Optional[CaptionSettings] = None,
    ) -> CaptionSession:
        """Create the active session for user_id.

        Args:
            user_id: Speaker identifier.
            session_id: Session identifier; a UUID is generated when omitted.
            settings: Initial settings; config defaults when omitted.

        Returns:
            The new session, with settings applied.
        """
        previous = self._sessions.pop(user_id, None)
        if previous is not None:
            logger.info("SessionRegistry: replacing session %s for user %s", previous.session_id, user_id)
            previous.close()

        session = CaptionSession(
            session_id=session_id or str(uuid.uuid4()),
            user_id=user_id,
            display=self._display_factory(user_id),
            scheduler=self._scheduler,
            config=self._config,
            idiom_dictionary=self._idiom_dictionary,
            translator=self._translator,
            encounter_store=self._encounter_store,
            settings=settings or self.default_settings(),
        )
        self._sessions[user_id] = session
        logger.info("SessionRegistry: session created id=%s user=%s", session.session_id, user_id)
        return session

    def stop_session(self, session_id: str, user_id: str, reason: str = "") -> bool:
        """Close and remove the user's session if it is session_id.

        Args:
            session_id: Session being stopped.
            user_id: Owner of the session.
            reason: Free-form reason for the log.

        Returns:
            True if a session was removed.
        """
        session = self._sessions.get(user_id)
        if session is None or session.session_id != session_id:
            logger.warning("SessionRegistry: stop_session called for unknown id=%s user=%s",
                           session_id, user_id)
            return False

        del self._sessions[user_id]
        session.close()
        logger.info("SessionRegistry: session %s stopped: %s", session_id, reason)
        return True

    def handle_event(self, user_id: str, event: TranscriptionEvent) -> CaptionSession:
        """Route an event to the user's session, starting one with defaults if needed.

        Returns:
            The session that handled the event.
        """
        session = self._sessions.get(user_id)
        if session is None:
            logger.info("SessionRegistry: no session for user %s, starting one with defaults", user_id)
            session = self.start_session(user_id)
        session.handle_event(event)
        return session

    def apply_settings(self, user_id: str, settings: CaptionSettings) -> bool:
        """Apply new settings to the user's session.

        Returns:
            False if the user has no active session.
        """
        session = self._sessions.get(user_id)
        if session is None:
            logger.warning("SessionRegistry: settings change for user %s without session", user_id)
            return False
        session.apply_settings(settings)
        return True

    def close_all(self) -> None:
        """Close all active sessions (called on shutdown)."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.close()
        logger.info("SessionRegistry: all sessions closed")
