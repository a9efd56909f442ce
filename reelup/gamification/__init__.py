"""Gamification core: actions, XP, achievements and engagement."""

from .achievements import (
    ACHIEVEMENTS,
    CATEGORIES,
    Achievement,
    AchievementEngine,
    AchievementProgress,
    Rarity,
    UserStats,
)
from .actions import (
    ActionKind,
    EmptyMetadata,
    QuizMetadata,
    UserAction,
    ValidationResult,
    VideoWatchMetadata,
    WatchBonusMetadata,
    metadata_to_dict,
    parse_metadata,
)
from .engagement import (
    EngagementConfig,
    EngagementMetrics,
    EngagementMilestone,
    EngagementTracker,
)
from .notifications import Notification, NotificationKind, build_notifications
from .xp import LevelInfo, StreakBonus, XPAward, XPCalculator, XPContext

__all__ = [
    "ACHIEVEMENTS",
    "CATEGORIES",
    "Achievement",
    "AchievementEngine",
    "AchievementProgress",
    "ActionKind",
    "EmptyMetadata",
    "EngagementConfig",
    "EngagementMetrics",
    "EngagementMilestone",
    "EngagementTracker",
    "LevelInfo",
    "Notification",
    "NotificationKind",
    "QuizMetadata",
    "Rarity",
    "StreakBonus",
    "UserAction",
    "UserStats",
    "ValidationResult",
    "VideoWatchMetadata",
    "WatchBonusMetadata",
    "XPAward",
    "XPCalculator",
    "XPContext",
    "build_notifications",
    "metadata_to_dict",
    "parse_metadata",
]
