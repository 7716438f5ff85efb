import logging
from typing import Callable, Optional

from livecaptions.Scheduler import DeferredAction, Scheduler
from livecaptions.types import GateDecision

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_INTERVAL_MS = 400


class ThrottleGate:
    """Rate-limits caption pushes to the display.

    Final updates always pass immediately and cancel any trailing emission.
    Partial updates pass immediately when the interval has elapsed since the
    last emission; otherwise a single trailing emission is scheduled at the
    interval boundary, carrying only the latest text.

    Args:
        scheduler: Clock and timer source
        emit: Called with (text, is_final) when an update goes out
        interval_ms: Minimum spacing between partial emissions
    """

    def __init__(self, scheduler: Scheduler,
                 emit: Callable[[str, bool], None],
                 interval_ms: int = DEFAULT_DEBOUNCE_INTERVAL_MS) -> None:
        self._scheduler: Scheduler = scheduler
        self._emit: Callable[[str, bool], None] = emit
        self.interval: float = max(0, interval_ms) / 1000.0
        self._last_emit_time: Optional[float] = None
        self._pending: Optional[DeferredAction] = None
        self._pending_text: str = ""

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and self._pending.active

    def should_emit_now(self, is_final: bool, now: float) -> GateDecision:
        """Decide whether an update arriving at now may go out immediately.

        Args:
            is_final: Final updates are never delayed
            now: Arrival time in seconds

        Returns:
            GateDecision.EMIT_NOW or GateDecision.SCHEDULE
        """
        if is_final or self._last_emit_time is None:
            return GateDecision.EMIT_NOW
        if now - self._last_emit_time >= self.interval:
            return GateDecision.EMIT_NOW
        return GateDecision.SCHEDULE

    def submit(self, text: str, is_final: bool) -> GateDecision:
        """Route a rendered window through the gate.

        Args:
            text: Rendered caption window
            is_final: Whether the window follows a final update

        Returns:
            The decision taken for this update
        """
        now = self._scheduler.now()
        decision = self.should_emit_now(is_final, now)

        if decision is GateDecision.EMIT_NOW:
            self.cancel()
            self._send(text, is_final, now)
            return decision

        # Only the latest partial survives
        self._pending_text = text
        if not self.has_pending:
            delay = self._last_emit_time + self.interval - now
            self._pending = self._scheduler.call_later(delay, self._flush_pending)
        return decision

    def cancel(self) -> None:
        """Drop any scheduled trailing emission."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._pending_text = ""

    def _flush_pending(self) -> None:
        text = self._pending_text
        self._pending = None
        self._pending_text = ""
        self._send(text, False, self._scheduler.now())

    def _send(self, text: str, is_final: bool, now: float) -> None:
        self._last_emit_time = now
        self._emit(text, is_final)
