"""Utility modules for reelup."""

from .clock import SYSTEM_CLOCK, Clock, datetime_to_ms, ms_to_datetime
from .errors import (
    NoActiveSessionError,
    SessionAlreadyActiveError,
    TrackingError,
    TrackingNotStartedError,
    UserNotFoundError,
)
from .fallback import best_effort

__all__ = [
    "SYSTEM_CLOCK",
    "Clock",
    "datetime_to_ms",
    "ms_to_datetime",
    "best_effort",
    "TrackingError",
    "SessionAlreadyActiveError",
    "NoActiveSessionError",
    "TrackingNotStartedError",
    "UserNotFoundError",
]
