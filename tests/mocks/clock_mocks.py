"""Controllable clock for deterministic time-dependent tests."""

from datetime import datetime

from reelup.utils.clock import Clock, datetime_to_ms

# A Wednesday at noon: no early-bird, night-owl or weekend bonus applies
NEUTRAL_TIME = datetime(2025, 1, 15, 12, 0, 0)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = NEUTRAL_TIME):
        self._now_ms = datetime_to_ms(start)

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, seconds: float = 0, minutes: float = 0, days: float = 0) -> None:
        """Move the clock forward."""
        total = seconds + minutes * 60 + days * 86400
        self._now_ms += int(total * 1000)

    def set(self, when: datetime) -> None:
        """Jump to a specific local time."""
        self._now_ms = datetime_to_ms(when)
