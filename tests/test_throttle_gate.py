"""Tests for ThrottleGate on the ManualScheduler virtual clock."""

from unittest.mock import Mock

from livecaptions.Scheduler import ManualScheduler
from livecaptions.ThrottleGate import ThrottleGate
from livecaptions.types import GateDecision


def _gate(interval_ms: int = 400) -> tuple[ThrottleGate, ManualScheduler, Mock]:
    scheduler = ManualScheduler()
    emit = Mock()
    return ThrottleGate(scheduler=scheduler, emit=emit, interval_ms=interval_ms), scheduler, emit


class TestShouldEmitNow:
    def test_first_update_emits(self) -> None:
        gate, _, _ = _gate()
        assert gate.should_emit_now(False, 0.0) is GateDecision.EMIT_NOW

    def test_final_always_emits(self) -> None:
        gate, _, _ = _gate()
        gate.submit("a", False)
        assert gate.should_emit_now(True, 0.01) is GateDecision.EMIT_NOW

    def test_partial_within_interval_is_scheduled(self) -> None:
        gate, _, _ = _gate()
        gate.submit("a", False)
        assert gate.should_emit_now(False, 0.399) is GateDecision.SCHEDULE
        assert gate.should_emit_now(False, 0.4) is GateDecision.EMIT_NOW


class TestSubmit:
    def test_burst_of_partials_coalesces_into_trailing_emission(self) -> None:
        gate, scheduler, emit = _gate()

        gate.submit("p0", False)
        emit.assert_called_once_with("p0", False)

        for i in range(1, 8):
            scheduler.advance_to(i * 0.05)
            assert gate.submit(f"p{i}", False) is GateDecision.SCHEDULE
        assert emit.call_count == 1
        assert gate.has_pending

        scheduler.advance_to(0.39)
        assert emit.call_count == 1
        scheduler.advance_to(0.41)
        assert emit.call_count == 2
        emit.assert_called_with("p7", False)
        assert not gate.has_pending

    def test_final_cancels_pending_emission(self) -> None:
        gate, scheduler, emit = _gate()
        gate.submit("p0", False)
        scheduler.advance_to(0.1)
        gate.submit("p1", False)

        scheduler.advance_to(0.2)
        assert gate.submit("done", True) is GateDecision.EMIT_NOW
        assert not gate.has_pending

        scheduler.advance_to(1.0)
        assert [c.args for c in emit.call_args_list] == [("p0", False), ("done", True)]

    def test_trailing_emission_restarts_interval(self) -> None:
        gate, scheduler, emit = _gate()
        gate.submit("p0", False)
        scheduler.advance_to(0.1)
        gate.submit("p1", False)
        scheduler.advance_to(0.45)
        emit.assert_called_with("p1", False)

        scheduler.advance_to(0.5)
        assert gate.submit("p2", False) is GateDecision.SCHEDULE
        scheduler.advance_to(0.79)
        emit.assert_called_with("p1", False)
        scheduler.advance_to(0.81)
        emit.assert_called_with("p2", False)

    def test_cancel_drops_pending(self) -> None:
        gate, scheduler, emit = _gate()
        gate.submit("p0", False)
        gate.submit("p1", False)
        gate.cancel()
        gate.cancel()
        scheduler.advance(1.0)
        emit.assert_called_once_with("p0", False)

    def test_zero_interval_never_schedules(self) -> None:
        gate, _, emit = _gate(interval_ms=0)
        for i in range(5):
            assert gate.submit(f"p{i}", False) is GateDecision.EMIT_NOW
        assert emit.call_count == 5
