"""Tests for autorelease.platform.clock."""

from autorelease.platform.clock import FakeClock, SystemClock


def test_fake_clock_sleep_advances_time() -> None:
    clock = FakeClock()

    clock.sleep(5)
    clock.sleep(2.5)

    assert clock.monotonic() == 7.5
    assert clock.sleeps == [5, 2.5]
    assert clock.slept == 7.5


def test_fake_clock_advance_is_not_recorded_as_sleep() -> None:
    clock = FakeClock(now=10.0)

    clock.advance(3)

    assert clock.monotonic() == 13.0
    assert clock.sleeps == []


def test_fake_clock_negative_sleep_does_not_rewind() -> None:
    clock = FakeClock(now=1.0)

    clock.sleep(-4)

    assert clock.monotonic() == 1.0


def test_system_clock_is_monotonic() -> None:
    clock = SystemClock()
    first = clock.monotonic()
    clock.sleep(0)
    assert clock.monotonic() >= first
