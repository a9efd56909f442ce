"""Progress embed builder for XP, level and achievement displays."""

from typing import List, Optional, TYPE_CHECKING

import discord

from ...constants import (
    COLOR_ACHIEVEMENT,
    COLOR_LEVEL_UP,
    COLOR_MILESTONE,
    COLOR_STREAK,
    COLOR_XP,
    DISCORD_EMBED_FIELD_LIMIT,
    DISCORD_EMBED_MAX_FIELDS,
)
from ...gamification.notifications import NotificationKind
from ..formatters import create_progress_bar, format_duration, truncate_text

if TYPE_CHECKING:
    from ...database.models import User
    from ...gamification.achievements import AchievementProgress
    from ...gamification.notifications import Notification
    from ...gamification.xp import LevelInfo
    from ...services.progress_service import ActionOutcome

NOTIFICATION_COLORS = {
    NotificationKind.XP_GAINED: COLOR_XP,
    NotificationKind.LEVEL_UP: COLOR_LEVEL_UP,
    NotificationKind.ACHIEVEMENT_UNLOCKED: COLOR_ACHIEVEMENT,
    NotificationKind.STREAK_BONUS: COLOR_STREAK,
    NotificationKind.MILESTONE_REACHED: COLOR_MILESTONE,
}

# Highest-priority kind decides the embed color
COLOR_PRIORITY = (
    NotificationKind.LEVEL_UP,
    NotificationKind.ACHIEVEMENT_UNLOCKED,
    NotificationKind.STREAK_BONUS,
    NotificationKind.MILESTONE_REACHED,
    NotificationKind.XP_GAINED,
)


class ProgressEmbedBuilder:
    """Builder for progress command embeds."""

    @staticmethod
    def create_base_embed(
        title: str, color: discord.Color = discord.Color.blue()
    ) -> discord.Embed:
        """Create a base embed with common styling.

        Args:
            title: Embed title
            color: Embed color (default: blue)

        Returns:
            Discord Embed
        """
        return discord.Embed(title=title, color=color)

    @staticmethod
    def create_progress_embed(
        user: "User",
        level: "LevelInfo",
        unlocked_count: int,
        total_achievements: int,
    ) -> discord.Embed:
        """Create the /progress overview.

        Args:
            user: User whose progress is shown
            level: Level info for the user's XP total
            unlocked_count: Achievements currently unlocked
            total_achievements: Size of the achievement catalogue

        Returns:
            Discord Embed
        """
        embed = ProgressEmbedBuilder.create_base_embed(
            f"📈 {user.username}'s Progress"
        )
        bar = create_progress_bar(level.current_level_xp, level.next_level_xp)
        embed.add_field(
            name=f"Level {level.level}",
            value=f"```\n{bar}\n```**{user.total_xp:,}** XP total",
            inline=False,
        )
        embed.add_field(
            name="Streak",
            value=f"🔥 **{user.current_streak}** days\nBest: {user.best_streak}",
            inline=True,
        )
        embed.add_field(
            name="Activity",
            value=f"🎬 {user.videos_watched} videos watched\n"
            f"❤️ {user.videos_liked} likes\n"
            f"⏱️ {format_duration(user.time_spent)} studied",
            inline=True,
        )
        embed.add_field(
            name="Achievements",
            value=f"🏆 {unlocked_count}/{total_achievements} unlocked",
            inline=True,
        )
        return embed

    @staticmethod
    def create_achievements_embed(
        progress: List["AchievementProgress"],
        category: Optional[str] = None,
    ) -> discord.Embed:
        """Create the /achievements catalogue view.

        Args:
            progress: Evaluated achievements to list
            category: Category being shown, if filtered

        Returns:
            Discord Embed
        """
        unlocked = sum(1 for p in progress if p.unlocked)
        title = "🏆 Achievements"
        if category:
            title += f" - {category.title()}"
        embed = ProgressEmbedBuilder.create_base_embed(title, discord.Color.gold())
        embed.description = f"{unlocked}/{len(progress)} unlocked"

        for item in progress[:DISCORD_EMBED_MAX_FIELDS]:
            achievement = item.achievement
            status = "✅" if item.unlocked else "🔒"
            lines = [
                achievement.description,
                create_progress_bar(item.current_progress, achievement.requirement, length=10),
                f"{achievement.rarity.emoji} {achievement.rarity.value.title()} · +{achievement.xp_reward} XP",
            ]
            if item.unlocked and item.unlocked_at:
                lines.append(f"Unlocked {item.unlocked_at:%Y-%m-%d}")
            embed.add_field(
                name=f"{status} {achievement.icon} {achievement.title}",
                value=truncate_text("\n".join(lines), DISCORD_EMBED_FIELD_LIMIT),
                inline=False,
            )
        return embed

    @staticmethod
    def create_outcome_embed(outcome: "ActionOutcome") -> Optional[discord.Embed]:
        """Create a celebration embed from an accepted action's notifications.

        Args:
            outcome: Result of a rewarded action

        Returns:
            Discord Embed, or None if there is nothing to celebrate
        """
        return ProgressEmbedBuilder.create_notifications_embed(outcome.notifications)

    @staticmethod
    def create_notifications_embed(
        notifications: List["Notification"],
    ) -> Optional[discord.Embed]:
        """Render notifications in display order as one embed.

        Args:
            notifications: Notifications to show

        Returns:
            Discord Embed, or None for an empty list
        """
        if not notifications:
            return None

        kinds = {n.kind for n in notifications}
        lead = next(kind for kind in COLOR_PRIORITY if kind in kinds)
        embed = discord.Embed(
            title=f"{lead.emoji} {notifications[0].title}",
            color=discord.Color(NOTIFICATION_COLORS[lead]),
        )
        embed.description = truncate_text(notifications[0].description, DISCORD_EMBED_FIELD_LIMIT)

        for notification in notifications[1:DISCORD_EMBED_MAX_FIELDS + 1]:
            embed.add_field(
                name=f"{notification.kind.emoji} {notification.title}",
                value=truncate_text(notification.description, DISCORD_EMBED_FIELD_LIMIT),
                inline=False,
            )
        return embed
