"""XP awards, streak multipliers and level progression."""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..utils.clock import SYSTEM_CLOCK, Clock


@dataclass(frozen=True)
class XPActivity:
    """Point values for one kind of activity."""

    type: str
    base_points: int
    first_time: Optional[int] = None
    perfect_score: Optional[int] = None
    streak_multiplier: Optional[float] = None


@dataclass(frozen=True)
class TimeBonus:
    """A time-of-day (or weekend) bonus window."""

    name: str
    start_hour: int
    end_hour: int
    bonus: int
    emoji: str

    def covers(self, hour: int) -> bool:
        """Check whether an hour falls inside the window.

        Windows whose end is before their start wrap past midnight.
        """
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


@dataclass(frozen=True)
class StreakBonus:
    """Multiplier tier unlocked by a run of consecutive active days."""

    days: int
    multiplier: float
    badge: str
    bonus_points: int


@dataclass(frozen=True)
class Encouragement:
    """Milestone message shown for continuous watching."""

    minutes: int
    message: str
    bonus: int


@dataclass(frozen=True)
class BonusEntry:
    """One applied bonus, in application order."""

    type: str
    amount: int
    description: str


@dataclass
class XPAward:
    """XP computed for a single action."""

    base_xp: int = 0
    bonus_xp: int = 0
    total_xp: int = 0
    bonuses: List[BonusEntry] = field(default_factory=list)
    encouragement: Optional[Encouragement] = None


@dataclass(frozen=True)
class LevelInfo:
    """Level reached for a cumulative XP total."""

    level: int
    current_level_xp: int
    next_level_xp: int
    progress: float  # percent of the current tier cleared


@dataclass(frozen=True)
class XPContext:
    """Facts about an action that qualify it for bonuses.

    Missing values are treated as "does not qualify".
    """

    is_first_time: bool = False
    score: Optional[float] = None
    completion_rate: Optional[float] = None
    current_streak: int = 0
    study_duration: Optional[int] = None  # seconds
    is_weekend: bool = False


EARLY_BIRD_NAME = "Early Bird"
NIGHT_OWL_NAME = "Night Owl"
WEEKEND_BONUS_NAME = "Weekend Warrior"


class XPCalculator:
    """Pure calculator for XP awards and levels.

    The only time dependence is the current hour and weekday, read from
    the injected clock.
    """

    ACTIVITIES: Dict[str, XPActivity] = {
        "video_watch": XPActivity("video_watch", 50, first_time=50, streak_multiplier=1.5),
        "video_like": XPActivity("video_like", 15, streak_multiplier=1.2),
        "quiz_complete": XPActivity("quiz_complete", 100, perfect_score=100, streak_multiplier=1.5),
        "challenge_complete": XPActivity("challenge_complete", 200, first_time=50, streak_multiplier=1.5),
        "notes_read": XPActivity("notes_read", 15, streak_multiplier=1.3),
        "course_complete": XPActivity("course_complete", 500, first_time=100),
        "watch_bonus": XPActivity("watch_bonus", 25, streak_multiplier=1.3),
    }

    ENCOURAGEMENTS: List[Encouragement] = [
        Encouragement(2, "Great start! Keep watching! 🌟", 5),
        Encouragement(4, "You're doing amazing! 🚀", 10),
        Encouragement(6, "Fantastic focus! 💪", 15),
        Encouragement(8, "You're on fire! 🔥", 20),
        Encouragement(10, "Incredible dedication! 🏆", 25),
        Encouragement(15, "Learning champion! 👑", 35),
        Encouragement(20, "Unstoppable learner! ⚡", 50),
        Encouragement(30, "Study marathon master! 🎯", 75),
        Encouragement(45, "Knowledge seeker extraordinaire! 🌟", 100),
        Encouragement(60, "Learning legend! You're incredible! 🎉", 150),
    ]

    TIME_BONUSES: List[TimeBonus] = [
        TimeBonus(EARLY_BIRD_NAME, 5, 8, 20, "🌅"),
        TimeBonus(NIGHT_OWL_NAME, 22, 2, 15, "🦉"),
        TimeBonus(WEEKEND_BONUS_NAME, 0, 24, 25, "⚡"),
    ]

    STREAK_BONUSES: List[StreakBonus] = [
        StreakBonus(3, 1.5, "Streak Starter", 75),
        StreakBonus(7, 1.75, "Week Warrior", 150),
        StreakBonus(14, 2.0, "Fortnight Fighter", 300),
        StreakBonus(30, 2.5, "Month Master", 1000),
        StreakBonus(100, 3.0, "Century Champion", 5000),
    ]

    COMPLETION_BONUS_HIGH = 30
    COMPLETION_BONUS_LOW = 15
    STUDY_DURATION_THRESHOLD = 7200  # 2 hours
    STUDY_DURATION_BONUS = 100
    MIN_STREAK_FOR_MULTIPLIER = 3

    BASE_LEVEL_REQUIREMENT = 100
    LEVEL_GROWTH = 1.4

    def __init__(self, clock: Clock = None):
        self.clock = clock or SYSTEM_CLOCK

    # ==================== Awards ====================

    def calculate_xp(
        self,
        activity_type: str,
        context: Optional[XPContext] = None,
    ) -> XPAward:
        """Calculate the XP award for an activity.

        Bonuses are applied in order: first time, perfect score, completion
        rate, time of day, study duration, then the streak multiplier on
        the running subtotal.

        Args:
            activity_type: Kind of activity (e.g. "quiz_complete")
            context: Facts qualifying the activity for bonuses

        Returns:
            XPAward; all zeros for an unknown activity type
        """
        activity = self.ACTIVITIES.get(str(getattr(activity_type, "value", activity_type)))
        if activity is None:
            return XPAward()

        context = context or XPContext()
        base_xp = activity.base_points
        bonuses: List[BonusEntry] = []

        if context.is_first_time and activity.first_time:
            bonuses.append(BonusEntry("first_time", activity.first_time, "First time bonus! 🎉"))

        if context.score == 100 and activity.perfect_score:
            bonuses.append(BonusEntry("perfect_score", activity.perfect_score, "Perfect score bonus! 💯"))

        completion = context.completion_rate or 0
        if completion >= 95:
            bonuses.append(BonusEntry("completion", self.COMPLETION_BONUS_HIGH, "95%+ completion bonus! ⭐"))
        elif completion >= 80:
            bonuses.append(BonusEntry("completion", self.COMPLETION_BONUS_LOW, "80%+ completion bonus! 👍"))

        bonuses.extend(self._time_bonuses(context.is_weekend))

        if (context.study_duration or 0) >= self.STUDY_DURATION_THRESHOLD:
            bonuses.append(BonusEntry("duration", self.STUDY_DURATION_BONUS, "🎯 Marathon study bonus!"))

        return self._finish(activity, base_xp, bonuses, context.current_streak)

    def calculate_watch_bonus(
        self,
        watch_time_minutes: int,
        context: Optional[XPContext] = None,
    ) -> XPAward:
        """Calculate the XP for a watch-time bonus claim.

        Awards the bonus of the highest encouragement threshold reached,
        then the time-of-day and streak bonuses. Callers must not claim the
        same threshold twice.

        Args:
            watch_time_minutes: Minutes of actual watch time claimed
            context: Only current_streak and is_weekend are read

        Returns:
            XPAward with the encouragement that was applied, if any
        """
        activity = self.ACTIVITIES["watch_bonus"]
        context = context or XPContext()
        base_xp = activity.base_points
        bonuses: List[BonusEntry] = []

        encouragement = self.get_encouragement(watch_time_minutes)
        if encouragement is not None:
            bonuses.append(BonusEntry("encouragement", encouragement.bonus, encouragement.message))

        bonuses.extend(self._time_bonuses(context.is_weekend))

        award = self._finish(activity, base_xp, bonuses, context.current_streak)
        award.encouragement = encouragement
        return award

    def get_encouragement(self, watch_time_minutes: int) -> Optional[Encouragement]:
        """Return the highest encouragement whose threshold was reached."""
        for encouragement in sorted(self.ENCOURAGEMENTS, key=lambda e: e.minutes, reverse=True):
            if watch_time_minutes >= encouragement.minutes:
                return encouragement
        return None

    def active_time_windows(self, is_weekend: bool = False) -> List[TimeBonus]:
        """Return the time-of-day and weekend windows covering the current time."""
        now = self.clock.now()
        weekend = is_weekend or now.weekday() >= 5
        active = []

        for time_bonus in self.TIME_BONUSES:
            if time_bonus.name == WEEKEND_BONUS_NAME:
                applies = weekend
            else:
                applies = time_bonus.covers(now.hour)
            if applies:
                active.append(time_bonus)
        return active

    def _time_bonuses(self, is_weekend: bool) -> List[BonusEntry]:
        return [
            BonusEntry(
                "time_bonus",
                time_bonus.bonus,
                f"{time_bonus.emoji} {time_bonus.name} bonus!",
            )
            for time_bonus in self.active_time_windows(is_weekend)
        ]

    def _finish(
        self,
        activity: XPActivity,
        base_xp: int,
        bonuses: List[BonusEntry],
        current_streak: Optional[int],
    ) -> XPAward:
        bonus_xp = sum(b.amount for b in bonuses)

        streak = current_streak or 0
        if streak >= self.MIN_STREAK_FOR_MULTIPLIER and activity.streak_multiplier:
            streak_bonus = self.get_streak_bonus(streak)
            if streak_bonus is not None:
                multiplier_bonus = math.floor((base_xp + bonus_xp) * (streak_bonus.multiplier - 1))
                bonus_xp += multiplier_bonus
                bonuses.append(
                    BonusEntry("streak", multiplier_bonus, f"🔥 {streak}-day streak multiplier!")
                )

        return XPAward(
            base_xp=base_xp,
            bonus_xp=bonus_xp,
            total_xp=base_xp + bonus_xp,
            bonuses=bonuses,
        )

    # ==================== Streaks ====================

    def get_streak_bonus(self, streak: int) -> Optional[StreakBonus]:
        """Return the highest streak tier reached, or None below 3 days."""
        reached = [sb for sb in self.STREAK_BONUSES if streak >= sb.days]
        if not reached:
            return None
        return max(reached, key=lambda sb: sb.days)

    def get_streak_milestone(self, streak: int) -> Optional[StreakBonus]:
        """Return the streak tier whose threshold is exactly ``streak``."""
        for streak_bonus in self.STREAK_BONUSES:
            if streak_bonus.days == streak:
                return streak_bonus
        return None

    # ==================== Levels ====================

    @classmethod
    def level_requirement(cls, level: int) -> int:
        """XP needed to clear a level (level 1 needs 100)."""
        return math.floor(cls.BASE_LEVEL_REQUIREMENT * cls.LEVEL_GROWTH ** (level - 1))

    @classmethod
    def xp_for_level(cls, level: int) -> int:
        """Cumulative XP at which a level is first reached."""
        return sum(cls.level_requirement(n) for n in range(1, level))

    def calculate_level(self, total_xp: int) -> LevelInfo:
        """Calculate level and in-tier progress for a cumulative XP total.

        Args:
            total_xp: Cumulative XP (negative values count as 0)

        Returns:
            LevelInfo for the tier currently being cleared
        """
        total_xp = max(0, int(total_xp or 0))
        level = 1
        total_required = 0
        requirement = self.level_requirement(level)

        while total_required + requirement <= total_xp:
            total_required += requirement
            level += 1
            requirement = self.level_requirement(level)

        current_level_xp = total_xp - total_required
        return LevelInfo(
            level=level,
            current_level_xp=current_level_xp,
            next_level_xp=requirement,
            progress=current_level_xp / requirement * 100,
        )

    def should_show_level_up(self, old_xp: int, new_xp: int) -> bool:
        """Check whether going from old_xp to new_xp crosses a level."""
        return self.calculate_level(new_xp).level > self.calculate_level(old_xp).level
