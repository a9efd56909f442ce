"""Injectable wall clock used by trackers, calculators and validators."""

import time
from datetime import date, datetime


class Clock:
    """Wall clock backed by the system time.

    Everything that depends on "now" takes a Clock so tests can substitute
    a controllable one.
    """

    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        return int(time.time() * 1000)

    def now(self) -> datetime:
        """Current server-local datetime."""
        return datetime.fromtimestamp(self.now_ms() / 1000)

    def today(self) -> date:
        """Current server-local calendar date."""
        return self.now().date()

    def seconds(self) -> float:
        """Current time as epoch seconds."""
        return self.now_ms() / 1000


SYSTEM_CLOCK = Clock()


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to a server-local datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000)


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(value.timestamp() * 1000)
