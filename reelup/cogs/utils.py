"""Common utilities for Discord cogs."""

import functools
import logging
from typing import Callable, Optional, TYPE_CHECKING

import discord

from ..constants import ERROR_GENERIC
from ..ui import ProgressEmbedBuilder

if TYPE_CHECKING:
    from ..database.models import User
    from ..database.repositories import UserRepository
    from ..services.progress_service import ActionOutcome

logger = logging.getLogger(__name__)


def defer_interaction(thinking: bool = True, ephemeral: bool = False):
    """Decorator to handle interaction deferral with error handling.

    This decorator wraps Discord slash command handlers to:
    1. Defer the interaction response to prevent timeout
    2. Handle NotFound errors (expired interactions)
    3. Handle other deferral errors gracefully

    Args:
        thinking: Whether to show "thinking" indicator (default: True)
        ephemeral: Whether followups are only visible to the invoking user

    Usage:
        @app_commands.command(name="example")
        @defer_interaction(thinking=True)
        async def example(self, interaction: discord.Interaction):
            # Interaction is already deferred at this point
            await interaction.followup.send("Response")
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            try:
                await interaction.response.defer(thinking=thinking, ephemeral=ephemeral)
            except discord.NotFound:
                logger.warning("Interaction expired before defer (network latency)")
                return
            except Exception as e:
                logger.error(f"Failed to defer interaction: {e}")
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator


async def get_or_create_user_from_interaction(
    user_repo: "UserRepository",
    interaction: discord.Interaction,
) -> "User":
    """Get or create a user from a Discord interaction.

    Args:
        user_repo: The user repository
        interaction: The Discord interaction

    Returns:
        The User model instance
    """
    return await user_repo.get_or_create(
        discord_id=str(interaction.user.id),
        username=interaction.user.display_name,
    )


async def send_outcome(
    interaction: discord.Interaction,
    outcome: "ActionOutcome",
    success_text: Optional[str] = None,
) -> None:
    """Report an action's outcome to the user.

    Rejections are sent ephemerally with the validator's reason; accepted
    actions get a celebration embed built from their notifications.

    Args:
        interaction: The Discord interaction (must be deferred)
        outcome: Result of reporting the action
        success_text: Message content sent alongside the embed
    """
    if not outcome.accepted:
        await interaction.followup.send(f"⏳ {outcome.validation.reason}", ephemeral=True)
        return

    embed = ProgressEmbedBuilder.create_outcome_embed(outcome)
    if embed is None:
        await interaction.followup.send(success_text or "✅ Recorded!")
        return
    await interaction.followup.send(content=success_text, embed=embed)


def handle_slash_command_errors(
    error_message: str = ERROR_GENERIC,
    context: str = "",
):
    """Decorator for standardized error handling in slash commands.

    Wraps slash command handlers to catch exceptions and send
    user-friendly error messages.

    Args:
        error_message: Error message to display to the user
        context: Context string for logging

    Usage:
        @app_commands.command(name="example")
        @defer_interaction(thinking=True)
        @handle_slash_command_errors(error_message="Failed!", context="/example")
        async def example(self, interaction: discord.Interaction):
            # Command implementation
            pass
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            try:
                return await func(self, interaction, *args, **kwargs)
            except discord.NotFound:
                logger.warning(f"Interaction expired in {context or func.__name__}")
            except Exception as e:
                logger.error(
                    f"Error in {context or func.__name__}: {e}",
                    exc_info=True
                )
                try:
                    await interaction.followup.send(error_message, ephemeral=True)
                except discord.NotFound:
                    pass
        return wrapper
    return decorator
