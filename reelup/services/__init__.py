"""Business logic services."""

from .action_validator import ActionValidator, RepositoryValidationStore, ValidationStore
from .network_guard import NetworkGuard
from .progress_service import ActionOutcome, ProgressService
from .watch_session import WatchSession, WatchSessionManager

__all__ = [
    "ActionOutcome",
    "ActionValidator",
    "NetworkGuard",
    "ProgressService",
    "RepositoryValidationStore",
    "ValidationStore",
    "WatchSession",
    "WatchSessionManager",
]
