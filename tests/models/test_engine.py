"""Tests for the focus/break session state machine."""

from datetime import datetime, timedelta

import pytest

from streakpro_cli.models.exceptions import InvalidTransition
from streakpro_cli.models.focus.engine import (
    FocusSessionEngine,
    SessionCompleted,
    SessionConfig,
    SessionEnded,
    SessionState,
)
from streakpro_cli.models.focus.ticker import ManualTicker


class FakeClock:
    """Wall clock that moves with the virtual ticks."""

    def __init__(self):
        self.now = datetime(2024, 5, 1, 9, 0, 0).astimezone()

    def __call__(self):
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


def make_engine(total_minutes=10, break_minutes=5, budget=1, strict=False):
    ticker = ManualTicker()
    clock = FakeClock()
    engine = FocusSessionEngine(
        SessionConfig.from_minutes(total_minutes, break_minutes, budget),
        ticker=ticker,
        clock=clock,
        strict=strict,
    )
    return engine, ticker, clock


def run(ticker: ManualTicker, clock: FakeClock, seconds: int) -> int:
    delivered = 0
    for _ in range(seconds):
        if not ticker.advance(1):
            break
        clock.advance(1)
        delivered += 1
    return delivered


def assert_invariants(engine: FocusSessionEngine) -> None:
    state = engine.state
    config = engine.config
    assert state.remaining_breaks + state.used_breaks == config.break_budget
    assert state.remaining_breaks >= 0
    assert 0 <= engine.focus_elapsed() <= config.focus_seconds
    if state.mode == "break":
        assert 0 <= state.remaining_seconds <= config.break_seconds
        assert engine.break_elapsed() == config.break_seconds - state.remaining_seconds
    else:
        assert 0 <= state.remaining_seconds <= config.focus_seconds
        assert engine.break_elapsed() == 0


class TestSessionConfig:
    def test_from_minutes(self):
        config = SessionConfig.from_minutes(25, 5, 2)
        assert config.focus_seconds == 1500
        assert config.break_seconds == 300
        assert config.break_budget == 2

    def test_zero_focus_rejected(self):
        with pytest.raises(ValueError):
            SessionConfig(focus_seconds=0, break_seconds=60, break_budget=1)

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            SessionConfig(focus_seconds=60, break_seconds=60, break_budget=-1)


class TestInitialState:
    def test_initial_state(self):
        engine, _, _ = make_engine()
        state = engine.state
        assert state.mode == "focus"
        assert state.remaining_seconds == 600
        assert state.saved_focus_remaining == 600
        assert state.accumulated_focus_seconds == 0
        assert state.remaining_breaks == 1
        assert state.used_breaks == 0
        assert state.is_running is False
        assert state.break_log == []

    def test_ticker_started_with_engine(self):
        _, ticker, _ = make_engine()
        assert ticker.running


class TestFocusTransitions:
    def test_tick_ignored_while_paused(self):
        engine, ticker, clock = make_engine()
        run(ticker, clock, 5)
        assert engine.state.remaining_seconds == 600

    def test_start_and_tick(self):
        engine, ticker, clock = make_engine()
        assert engine.start() is True
        run(ticker, clock, 30)
        assert engine.state.remaining_seconds == 570
        assert engine.focus_elapsed() == 30

    def test_pause_requires_running(self):
        engine, _, _ = make_engine()
        assert engine.pause() is False

    def test_pause_folds_nothing_and_stops_countdown(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 10)
        assert engine.pause() is True
        run(ticker, clock, 10)
        assert engine.state.remaining_seconds == 590

    def test_start_twice_is_noop(self):
        engine, _, _ = make_engine()
        engine.start()
        assert engine.start() is False
        assert engine.is_running

    def test_take_break_without_budget_rejected(self):
        engine, _, _ = make_engine(budget=0)
        engine.start()
        assert engine.take_break() is False
        assert engine.mode == "focus"

    def test_strict_engine_raises(self):
        engine, _, _ = make_engine(budget=0, strict=True)
        with pytest.raises(InvalidTransition):
            engine.take_break()
        with pytest.raises(InvalidTransition):
            engine.skip_break()

    def test_break_operations_rejected_in_focus(self):
        engine, _, _ = make_engine()
        assert engine.skip_break() is False
        assert engine.pause_break() is False
        assert engine.resume_break() is False
        assert engine.return_to_focus_early() is False

    def test_take_break_sets_state(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 60)
        assert engine.take_break() is True
        state = engine.state
        assert state.mode == "break"
        assert state.remaining_seconds == 300
        assert state.saved_focus_remaining == 540
        assert state.accumulated_focus_seconds == 60
        assert state.used_breaks == 1
        assert state.remaining_breaks == 0
        assert state.is_running is True
        assert_invariants(engine)


class TestBreakTransitions:
    def test_natural_break_completion(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 60)
        engine.take_break()
        run(ticker, clock, 300)
        state = engine.state
        assert state.mode == "focus"
        assert state.remaining_seconds == 540
        assert state.is_running is False
        assert len(state.break_log) == 1
        record = state.break_log[0]
        assert record.kind == "completed"
        assert record.duration_seconds == 300
        assert record.focus_accumulated_before_break == 540

    def test_skip_break_logs_zero_and_resumes(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 60)
        engine.take_break()
        run(ticker, clock, 20)
        assert engine.skip_break() is True
        state = engine.state
        assert state.mode == "focus"
        assert state.is_running is True
        assert state.remaining_seconds == 540
        assert state.break_log[-1].kind == "skipped"
        assert state.break_log[-1].duration_seconds == 0
        # the spent budget is not refunded
        assert state.used_breaks == 1
        assert state.remaining_breaks == 0

    def test_return_to_focus_early_credits_elapsed(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 60)
        engine.take_break()
        run(ticker, clock, 120)
        assert engine.return_to_focus_early() is True
        assert engine.state.break_log[-1].duration_seconds == 120
        assert engine.state.break_log[-1].kind == "completed"
        assert engine.is_running

    def test_pause_and_resume_break(self):
        engine, ticker, clock = make_engine()
        engine.start()
        engine.take_break()
        run(ticker, clock, 10)
        assert engine.pause_break() is True
        run(ticker, clock, 10)
        assert engine.state.remaining_seconds == 290
        assert engine.pause_break() is False
        assert engine.resume_break() is True
        assert engine.resume_break() is False
        run(ticker, clock, 10)
        assert engine.state.remaining_seconds == 280

    def test_focus_operations_rejected_in_break(self):
        engine, _, _ = make_engine(budget=2)
        engine.start()
        engine.take_break()
        assert engine.take_break() is False
        assert engine.pause() is False
        assert engine.start() is False


class TestFullSessions:
    def test_uninterrupted_focus_completes(self):
        """10 minutes, no breaks taken: completes after 600 ticks."""
        engine, ticker, clock = make_engine()
        results = []
        engine.on_finish(results.append)
        engine.start()
        delivered = run(ticker, clock, 700)

        assert delivered == 600
        result = engine.result
        assert isinstance(result, SessionCompleted)
        assert result.total_focus_seconds == 600
        assert result.used_breaks == 0
        assert result.break_log == ()
        assert results == [result]
        assert not ticker.running

    def test_five_minute_break_then_completion(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 180)
        engine.take_break()
        run(ticker, clock, 300)
        assert engine.mode == "focus"
        engine.start()
        run(ticker, clock, 420)

        result = engine.result
        assert isinstance(result, SessionCompleted)
        assert result.total_focus_seconds == 600
        assert result.used_breaks == 1
        assert [r.duration_seconds for r in result.break_log] == [300]
        assert result.completed_break_seconds == 300

    def test_two_minute_break_mid_session(self):
        """Three minutes of focus, one full two-minute break, then the remaining seven."""
        engine, ticker, clock = make_engine(total_minutes=10, break_minutes=2, budget=1)
        engine.start()
        run(ticker, clock, 180)
        assert engine.take_break() is True
        assert run(ticker, clock, 120) == 120
        assert engine.mode == "focus"
        assert engine.state.remaining_seconds == 420
        engine.start()
        run(ticker, clock, 420)

        result = engine.result
        assert isinstance(result, SessionCompleted)
        assert result.total_focus_seconds == 600
        assert result.used_breaks == 1
        assert engine.state.remaining_breaks == 0
        assert [(r.kind, r.duration_seconds) for r in result.break_log] == [("completed", 120)]

    def test_end_during_break_drops_the_break(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 240)
        engine.take_break()
        run(ticker, clock, 60)
        result = engine.end_session()

        assert isinstance(result, SessionEnded)
        assert result.reason == "user"
        assert result.total_focus_seconds == 240
        assert result.used_breaks == 1
        # the break in progress is abandoned
        assert result.break_log == ()
        assert not ticker.running

    def test_skip_then_complete(self):
        engine, ticker, clock = make_engine(budget=2)
        engine.start()
        run(ticker, clock, 100)
        engine.take_break()
        engine.skip_break()
        run(ticker, clock, 500)
        result = engine.result
        assert result.total_focus_seconds == 600
        assert result.completed_break_seconds == 0
        assert [r.kind for r in result.break_log] == ["skipped"]


class TestTermination:
    def test_end_session_from_paused_focus(self):
        engine, ticker, clock = make_engine()
        engine.start()
        run(ticker, clock, 42)
        engine.pause()
        result = engine.end_session()
        assert result.total_focus_seconds == 42

    def test_end_session_reason(self):
        engine, _, _ = make_engine()
        result = engine.end_session("closed")
        assert result.reason == "closed"
        assert result.total_focus_seconds == 0

    def test_terminal_engine_rejects_everything(self):
        engine, ticker, clock = make_engine()
        engine.end_session()
        assert engine.start() is False
        assert engine.take_break() is False
        assert engine.end_session() is None
        assert engine.tick() is None
        assert run(ticker, clock, 5) == 0

    def test_terminal_strict_engine_raises(self):
        engine, _, _ = make_engine(strict=True)
        engine.end_session()
        with pytest.raises(InvalidTransition):
            engine.start()

    def test_listeners_notified_on_finish(self):
        engine, _, _ = make_engine()
        seen = []
        engine.add_listener(lambda e: seen.append(e.finished))
        engine.end_session()
        assert seen[-1] is True


class TestAccounting:
    def test_focus_never_double_counted(self):
        engine, ticker, clock = make_engine(budget=3)
        engine.start()
        for _ in range(3):
            run(ticker, clock, 50)
            engine.take_break()
            run(ticker, clock, 10)
            engine.return_to_focus_early()
            assert_invariants(engine)
        run(ticker, clock, 1000)
        assert engine.result.total_focus_seconds == 600

    def test_invariants_hold_through_a_session(self):
        engine, ticker, clock = make_engine(budget=2)
        steps = [
            engine.start,
            lambda: run(ticker, clock, 30),
            engine.take_break,
            lambda: run(ticker, clock, 30),
            engine.pause_break,
            engine.resume_break,
            engine.skip_break,
            lambda: run(ticker, clock, 30),
            engine.pause,
            engine.start,
            engine.take_break,
            lambda: run(ticker, clock, 400),
        ]
        for step in steps:
            step()
            assert_invariants(engine)


class TestReentrancy:
    def test_nested_tick_rejected(self):
        engine, ticker, clock = make_engine()
        engine.start()
        nested = []

        def listener(e):
            if not nested:
                nested.append(e.tick())

        engine.add_listener(listener)
        ticker.advance(1)
        assert nested == [None]
        assert engine.state.remaining_seconds == 599


def test_restore_from_state():
    config = SessionConfig.from_minutes(10, 5, 1)
    engine, ticker, clock = make_engine()
    engine.start()
    run(ticker, clock, 100)
    engine.take_break()

    state = SessionState.from_dict(engine.state.to_dict())
    restored = FocusSessionEngine(config, ticker=ManualTicker(), state=state)
    assert restored.mode == "break"
    assert restored.focus_elapsed() == 100
    assert restored.state.saved_focus_remaining == 500
