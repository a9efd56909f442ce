"""Achievement catalogue and progress evaluation."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Rarity(Enum):
    """Achievement rarity tiers."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def emoji(self) -> str:
        """Get emoji for this rarity."""
        return {
            Rarity.COMMON: "⚪",
            Rarity.RARE: "🔵",
            Rarity.EPIC: "🟣",
            Rarity.LEGENDARY: "🟡",
        }.get(self, "⬜")


@dataclass(frozen=True)
class UserStats:
    """Read-only snapshot of a user's lifetime statistics."""

    total_xp: int = 0
    videos_watched: int = 0
    videos_liked: int = 0
    current_streak: int = 0
    best_streak: int = 0
    time_spent: int = 0  # seconds
    early_bird_sessions: int = 0
    night_owl_sessions: int = 0
    weekend_sessions: int = 0
    unlocked_achievements: Tuple[str, ...] = ()

    def get(self, stat: str) -> int:
        """Read a numeric stat by name, treating missing/None as 0."""
        return getattr(self, stat, 0) or 0


@dataclass(frozen=True)
class Achievement:
    """A static achievement definition.

    Every condition is "a named stat has reached the requirement", so the
    definition carries the stat name instead of closures.
    """

    id: str
    title: str
    description: str
    icon: str
    category: str
    stat: str
    requirement: int
    xp_reward: int
    rarity: Rarity

    def condition(self, stats: UserStats) -> bool:
        """Check whether the stats unlock this achievement."""
        return stats.get(self.stat) >= self.requirement

    def progress_tracker(self, stats: UserStats) -> int:
        """Raw progress value towards the requirement."""
        return stats.get(self.stat)


@dataclass
class AchievementProgress:
    """An achievement with state derived from a stats snapshot."""

    achievement: Achievement
    current_progress: int
    unlocked: bool
    unlocked_at: Optional[datetime] = None

    @property
    def id(self) -> str:
        return self.achievement.id

    @property
    def percent(self) -> float:
        """Progress as a percentage of the requirement."""
        requirement = self.achievement.requirement
        return self.current_progress / requirement * 100 if requirement > 0 else 100.0


def _achievement(id, title, description, icon, category, stat, requirement, xp_reward, rarity):
    return Achievement(id, title, description, icon, category, stat, requirement, xp_reward, rarity)


ACHIEVEMENTS: List[Achievement] = [
    # Learning volume
    _achievement("first_steps", "First Steps", "Watch your first video", "▶️",
                 "learning", "videos_watched", 1, 50, Rarity.COMMON),
    _achievement("video_explorer", "Video Explorer", "Watch 10 videos", "🧭",
                 "learning", "videos_watched", 10, 100, Rarity.COMMON),
    _achievement("binge_watcher", "Binge Watcher", "Watch 50 videos", "📺",
                 "learning", "videos_watched", 50, 250, Rarity.RARE),
    _achievement("knowledge_seeker", "Knowledge Seeker", "Watch 100 videos", "🧠",
                 "learning", "videos_watched", 100, 500, Rarity.EPIC),
    _achievement("master_learner", "Master Learner", "Watch 500 videos", "👑",
                 "learning", "videos_watched", 500, 2000, Rarity.LEGENDARY),
    # Streak length
    _achievement("streak_starter", "Streak Starter", "Learn for 3 days in a row", "🔥",
                 "consistency", "current_streak", 3, 75, Rarity.COMMON),
    _achievement("week_warrior", "Week Warrior", "Learn for 7 days in a row", "🔥",
                 "consistency", "current_streak", 7, 150, Rarity.RARE),
    _achievement("month_master", "Month Master", "Learn for 30 days in a row", "🌋",
                 "consistency", "current_streak", 30, 1000, Rarity.EPIC),
    _achievement("century_champion", "Century Champion", "Learn for 100 days in a row", "🏅",
                 "consistency", "current_streak", 100, 5000, Rarity.LEGENDARY),
    # Time spent (seconds)
    _achievement("time_invested", "Time Invested", "Study for 10 hours total", "⏰",
                 "time", "time_spent", 36000, 200, Rarity.COMMON),
    _achievement("marathon_learner", "Marathon Learner", "Study for 100 hours total", "⏳",
                 "time", "time_spent", 360000, 1500, Rarity.EPIC),
    _achievement("time_master", "Time Master", "Study for 1000 hours total", "🤖",
                 "time", "time_spent", 3600000, 10000, Rarity.LEGENDARY),
    # Likes
    _achievement("heart_giver", "Heart Giver", "Like 50 videos", "❤️",
                 "social", "videos_liked", 50, 100, Rarity.COMMON),
    _achievement("love_spreader", "Love Spreader", "Like 200 videos", "🦋",
                 "social", "videos_liked", 200, 300, Rarity.RARE),
    # XP milestones
    _achievement("xp_collector", "XP Collector", "Earn 1,000 XP", "⚡",
                 "mastery", "total_xp", 1000, 100, Rarity.COMMON),
    _achievement("xp_master", "XP Master", "Earn 10,000 XP", "⭐",
                 "mastery", "total_xp", 10000, 500, Rarity.RARE),
    _achievement("xp_legend", "XP Legend", "Earn 100,000 XP", "👑",
                 "mastery", "total_xp", 100000, 2000, Rarity.EPIC),
    _achievement("xp_god", "XP God", "Earn 1,000,000 XP", "💎",
                 "mastery", "total_xp", 1000000, 10000, Rarity.LEGENDARY),
    # Special sessions
    _achievement("early_bird", "Early Bird", "Study 10 times between 5-8 AM", "🌅",
                 "special", "early_bird_sessions", 10, 200, Rarity.RARE),
    _achievement("night_owl", "Night Owl", "Study 10 times between 10 PM-2 AM", "🌙",
                 "special", "night_owl_sessions", 10, 200, Rarity.RARE),
    _achievement("weekend_warrior", "Weekend Warrior", "Study 20 times on weekends", "🎉",
                 "special", "weekend_sessions", 20, 300, Rarity.RARE),
]

CATEGORIES: Tuple[str, ...] = ("learning", "consistency", "time", "social", "mastery", "special")


class AchievementEngine:
    """Evaluates the achievement catalogue against a stats snapshot.

    Unlock state is always recomputed from stats; persisted unlock
    timestamps only decorate the result.
    """

    def __init__(self, achievements: Optional[List[Achievement]] = None):
        self.achievements = list(achievements) if achievements is not None else list(ACHIEVEMENTS)
        self._by_id: Dict[str, Achievement] = {a.id: a for a in self.achievements}

    def get(self, achievement_id: str) -> Optional[Achievement]:
        """Look up an achievement definition by ID."""
        return self._by_id.get(achievement_id)

    def get_achievement_progress(
        self,
        stats: UserStats,
        unlocked_at: Optional[Dict[str, datetime]] = None,
    ) -> List[AchievementProgress]:
        """Evaluate every achievement against the stats.

        Args:
            stats: The user's stats snapshot
            unlocked_at: Optional cached unlock timestamps by achievement ID

        Returns:
            One AchievementProgress per catalogue entry, in catalogue order
        """
        unlocked_at = unlocked_at or {}
        results = []
        for achievement in self.achievements:
            unlocked = achievement.condition(stats)
            results.append(
                AchievementProgress(
                    achievement=achievement,
                    current_progress=min(achievement.progress_tracker(stats), achievement.requirement),
                    unlocked=unlocked,
                    unlocked_at=unlocked_at.get(achievement.id) if unlocked else None,
                )
            )
        return results

    def check_achievements(self, stats: UserStats) -> List[Achievement]:
        """Return achievements met by the stats but not yet marked unlocked.

        Args:
            stats: Snapshot whose unlocked_achievements lists the IDs already
                awarded

        Returns:
            Newly unlocked achievements, in catalogue order
        """
        already = set(stats.unlocked_achievements or ())
        return [
            achievement
            for achievement in self.achievements
            if achievement.condition(stats) and achievement.id not in already
        ]

    def by_category(self, progress: List[AchievementProgress], category: str) -> List[AchievementProgress]:
        """Filter evaluated achievements to one category."""
        return [p for p in progress if p.achievement.category == category]
