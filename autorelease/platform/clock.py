"""Time source for polling loops.

The CI wait loop and the post-push settle delay both suspend. They do so
through a ``Clock`` so tests can advance time instantly with ``FakeClock``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol

__all__ = ["Clock", "FakeClock", "SystemClock"]


class Clock(Protocol):
    def monotonic(self) -> float:
        """Seconds from an arbitrary, never-decreasing origin."""
        ...

    def sleep(self, seconds: float) -> None:
        """Suspend for ``seconds``."""
        ...


class SystemClock:
    """Wall-clock implementation backed by :mod:`time`."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


def _empty_sleeps() -> list[float]:
    return []


@dataclass
class FakeClock:
    """Deterministic clock: ``sleep`` advances ``now`` and records the delay."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=_empty_sleeps)

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(0.0, seconds)

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def slept(self) -> float:
        return sum(self.sleeps)
