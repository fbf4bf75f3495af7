"""Tests for the countdown clock."""

import pytest

from quiz_taker.runtime.session_clock import SessionClock


@pytest.fixture
def clock(qt_app):
    session_clock = SessionClock(tick_interval_ms=5)
    yield session_clock
    session_clock.stop()


def test_zero_duration_expires_immediately(clock):
    ticks, expiries = [], []
    clock.start(0, ticks.append, lambda: expiries.append(True))

    assert ticks == []
    assert expiries == [True]
    assert not clock.is_running()


def test_ticks_down_then_expires_once(clock, wait_until, pump_for):
    ticks, expiries = [], []
    clock.start(5, ticks.append, lambda: expiries.append(True))

    assert clock.is_running()
    assert wait_until(lambda: expiries)
    pump_for(0.05)

    assert ticks == [4, 3, 2, 1, 0]
    assert expiries == [True]
    assert clock.remaining_seconds == 0


def test_stop_silences_clock(clock, wait_until, pump_for):
    ticks, expiries = [], []
    clock.start(100, ticks.append, lambda: expiries.append(True))
    assert wait_until(lambda: len(ticks) >= 2)

    clock.stop()
    seen = list(ticks)
    pump_for(0.05)

    assert ticks == seen
    assert expiries == []


def test_stopping_from_last_tick_prevents_expiry(clock, pump_for):
    expiries = []

    def on_tick(remaining):
        if remaining == 0:
            clock.stop()

    clock.start(2, on_tick, lambda: expiries.append(True))
    pump_for(0.1)

    assert expiries == []


def test_negative_duration_is_rejected(clock):
    with pytest.raises(ValueError):
        clock.start(-1, lambda remaining: None, lambda: None)
