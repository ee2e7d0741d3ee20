"""Process and time primitives."""

from .clock import Clock, FakeClock, SystemClock
from .process import ProcessError, Trace, run

__all__ = ["Clock", "FakeClock", "ProcessError", "SystemClock", "Trace", "run"]
