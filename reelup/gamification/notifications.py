"""Celebration notifications produced after a rewarded action."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .achievements import Achievement
from .xp import StreakBonus, XPAward


class NotificationKind(Enum):
    """Kinds of user-facing celebration messages."""

    XP_GAINED = "xp_gained"
    LEVEL_UP = "level_up"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    STREAK_BONUS = "streak_bonus"
    MILESTONE_REACHED = "milestone_reached"

    @property
    def emoji(self) -> str:
        """Get emoji for this notification kind."""
        return {
            NotificationKind.XP_GAINED: "⚡",
            NotificationKind.LEVEL_UP: "🎊",
            NotificationKind.ACHIEVEMENT_UNLOCKED: "🏆",
            NotificationKind.STREAK_BONUS: "🔥",
            NotificationKind.MILESTONE_REACHED: "🎯",
        }.get(self, "🎉")


@dataclass(frozen=True)
class Notification:
    """A message to show the user, e.g. as an embed."""

    kind: NotificationKind
    title: str
    description: str
    xp: Optional[int] = None
    level: Optional[int] = None
    achievement: Optional[str] = None
    streak: Optional[int] = None


def build_notifications(
    award: Optional[XPAward],
    new_level: Optional[int] = None,
    leveled_up: bool = False,
    new_achievements: Optional[List[Achievement]] = None,
    streak_milestone: Optional[StreakBonus] = None,
    current_streak: int = 0,
) -> List[Notification]:
    """Build the notifications for a rewarded action, in display order.

    Args:
        award: The XP award, if any
        new_level: Level after the award
        leveled_up: Whether the award crossed a level boundary
        new_achievements: Achievements unlocked by this action
        streak_milestone: Streak tier reached exactly by this action
        current_streak: The user's streak after the action

    Returns:
        Notifications: XP, streak, level-up, achievements, encouragement
    """
    notifications: List[Notification] = []

    if award is not None and award.total_xp > 0:
        details = ", ".join(f"{b.description} +{b.amount}" for b in award.bonuses)
        notifications.append(
            Notification(
                kind=NotificationKind.XP_GAINED,
                title=f"+{award.total_xp} XP",
                description=details or "Nice work!",
                xp=award.total_xp,
            )
        )

    if streak_milestone is not None:
        notifications.append(
            Notification(
                kind=NotificationKind.STREAK_BONUS,
                title=streak_milestone.badge,
                description=f"{current_streak} days in a row! XP multiplier x{streak_milestone.multiplier}",
                streak=current_streak,
            )
        )

    if leveled_up and new_level is not None:
        notifications.append(
            Notification(
                kind=NotificationKind.LEVEL_UP,
                title="Level Up!",
                description=f"You reached level {new_level}!",
                level=new_level,
            )
        )

    for achievement in new_achievements or []:
        notifications.append(
            Notification(
                kind=NotificationKind.ACHIEVEMENT_UNLOCKED,
                title=f"{achievement.icon} {achievement.title}",
                description=achievement.description,
                xp=achievement.xp_reward,
                achievement=achievement.id,
            )
        )

    if award is not None and award.encouragement is not None:
        notifications.append(
            Notification(
                kind=NotificationKind.MILESTONE_REACHED,
                title=f"{award.encouragement.minutes} minutes watched",
                description=award.encouragement.message,
                xp=award.encouragement.bonus,
            )
        )

    return notifications
