"""Database layer for reelup."""

from .connection import Database
from .repositories import (
    AchievementRepository,
    ActionRepository,
    LikeRepository,
    UserRepository,
    WatchBonusRepository,
)

__all__ = [
    "AchievementRepository",
    "ActionRepository",
    "Database",
    "LikeRepository",
    "UserRepository",
    "WatchBonusRepository",
]
