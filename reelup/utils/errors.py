"""Custom exceptions for watch tracking and progress lookups."""


class TrackingError(Exception):
    """Base exception for engagement tracking errors."""

    pass


class SessionAlreadyActiveError(TrackingError):
    """Raised when starting a watch session for a user that already has one."""

    pass


class NoActiveSessionError(TrackingError):
    """Raised when an operation requires a watch session and none exists."""

    pass


class TrackingNotStartedError(TrackingError):
    """Raised when a tracker is driven before start_tracking() was called."""

    pass


class UserNotFoundError(Exception):
    """Raised when a progress lookup targets a user that does not exist."""

    pass
