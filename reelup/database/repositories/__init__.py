"""Database repositories for domain-specific operations."""

from .achievement_repository import AchievementRepository
from .action_repository import ActionRepository
from .base import BaseRepository
from .like_repository import LikeRepository
from .user_repository import UserRepository
from .watch_bonus_repository import WatchBonusRepository

__all__ = [
    "AchievementRepository",
    "ActionRepository",
    "BaseRepository",
    "LikeRepository",
    "UserRepository",
    "WatchBonusRepository",
]
