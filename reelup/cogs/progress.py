"""Progress command cog for XP, levels and achievements."""

import logging
from typing import Optional, TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from ..constants import ERROR_NO_PROGRESS, ERROR_PROGRESS
from ..gamification.achievements import CATEGORIES
from ..ui import ProgressEmbedBuilder
from ..utils.errors import UserNotFoundError
from .utils import (
    defer_interaction,
    get_or_create_user_from_interaction,
    handle_slash_command_errors,
)

if TYPE_CHECKING:
    from ..bot import ReelupBot

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [
    app_commands.Choice(name=category.title(), value=category) for category in CATEGORIES
]


class ProgressCog(commands.Cog):
    """Cog for the /progress and /achievements commands."""

    def __init__(self, bot: "ReelupBot"):
        self.bot = bot

    @app_commands.command(name="progress", description="View your level, XP and streak")
    @app_commands.describe(member="Whose progress to show (leave empty for your own)")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_PROGRESS, context="/progress")
    async def progress(
        self,
        interaction: discord.Interaction,
        member: Optional[discord.Member] = None,
    ):
        """Show a progress overview."""
        if member is None or member.id == interaction.user.id:
            user = await get_or_create_user_from_interaction(
                self.bot.user_repo, interaction
            )
        else:
            try:
                user = await self.bot.progress_service.get_user(str(member.id))
            except UserNotFoundError:
                await interaction.followup.send(ERROR_NO_PROGRESS, ephemeral=True)
                return

        service = self.bot.progress_service
        level = service.get_level(user)
        achievements = await service.get_achievements(user)
        unlocked = sum(1 for a in achievements if a.unlocked)

        embed = ProgressEmbedBuilder.create_progress_embed(
            user, level, unlocked, len(achievements)
        )
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="achievements", description="Browse achievements and your progress")
    @app_commands.describe(category="Only show one category")
    @app_commands.choices(category=CATEGORY_CHOICES)
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_PROGRESS, context="/achievements")
    async def achievements(
        self,
        interaction: discord.Interaction,
        category: Optional[app_commands.Choice[str]] = None,
    ):
        """Show the achievement catalogue with progress."""
        user = await get_or_create_user_from_interaction(
            self.bot.user_repo, interaction
        )

        service = self.bot.progress_service
        progress = await service.get_achievements(user)
        category_name = category.value if category else None
        if category_name:
            progress = service.achievement_engine.by_category(progress, category_name)

        embed = ProgressEmbedBuilder.create_achievements_embed(progress, category_name)
        await interaction.followup.send(embed=embed)


async def setup(bot: "ReelupBot"):
    """Set up the Progress cog."""
    await bot.add_cog(ProgressCog(bot))
