"""Data models for reelup database."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    """Represents a Discord user and their cumulative progress."""

    id: Optional[int]
    discord_id: str
    username: str
    total_xp: int = 0
    videos_watched: int = 0
    videos_liked: int = 0
    current_streak: int = 0
    best_streak: int = 0
    time_spent: int = 0  # seconds
    early_bird_sessions: int = 0
    night_owl_sessions: int = 0
    weekend_sessions: int = 0
    last_activity_date: Optional[str] = None  # YYYY-MM-DD, server-local
    created_at: Optional[datetime] = None
    last_active: Optional[datetime] = None


@dataclass
class WatchBonusRecord:
    """A watch-time bonus that has been paid out."""

    id: Optional[int]
    user_id: int
    video_id: str
    watch_time_minutes: int
    bonus_xp: int = 0
    created_at: Optional[datetime] = None


@dataclass
class UnlockedAchievement:
    """Cached first-unlock time of an achievement."""

    user_id: int
    achievement_id: str
    unlocked_at: Optional[datetime] = None


@dataclass
class ValidationFailure:
    """A rejected action kept for review."""

    id: Optional[int]
    user_id: int
    action_type: str
    reason: Optional[str]
    timestamp_ms: int
    source_address: Optional[str] = None
    metadata: Optional[str] = None  # JSON
