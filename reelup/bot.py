"""Main Discord bot class for reelup."""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from .config import Config, load_config
from .constants import ERROR_GENERIC
from .database.connection import Database
from .database.repositories import (
    AchievementRepository,
    ActionRepository,
    LikeRepository,
    UserRepository,
    WatchBonusRepository,
)
from .gamification import AchievementEngine, XPCalculator
from .services import (
    ActionValidator,
    NetworkGuard,
    ProgressService,
    RepositoryValidationStore,
    WatchSessionManager,
)
from .utils.clock import SYSTEM_CLOCK, Clock

logger = logging.getLogger(__name__)


class ReelupBot(commands.Bot):
    """The main reelup Discord bot."""

    def __init__(self, config: Config, clock: Clock = None):
        intents = discord.Intents.default()

        super().__init__(
            command_prefix="!",
            intents=intents,
            description="reelup - learn from short videos, earn XP and achievements",
        )

        self.config = config
        self.clock = clock or SYSTEM_CLOCK
        self.database: Optional[Database] = None

        # Repositories
        self.user_repo: Optional[UserRepository] = None
        self.action_repo: Optional[ActionRepository] = None
        self.like_repo: Optional[LikeRepository] = None
        self.watch_bonus_repo: Optional[WatchBonusRepository] = None
        self.achievement_repo: Optional[AchievementRepository] = None

        # Services
        self.validator: Optional[ActionValidator] = None
        self.progress_service: Optional[ProgressService] = None
        self.watch_sessions: Optional[WatchSessionManager] = None

    async def setup_hook(self) -> None:
        """Initialize bot components on startup."""
        logger.info("Setting up reelup bot...")

        # Initialize database and repositories
        self.database = Database(self.config.database.path)
        await self.database.connect()
        self.user_repo = UserRepository(self.database)
        self.action_repo = ActionRepository(self.database)
        self.like_repo = LikeRepository(self.database)
        self.watch_bonus_repo = WatchBonusRepository(self.database)
        self.achievement_repo = AchievementRepository(self.database)
        logger.info("Database connected")

        # Initialize services
        anti_cheat = self.config.anti_cheat
        self.validator = ActionValidator(
            store=RepositoryValidationStore(
                like_repo=self.like_repo,
                action_repo=self.action_repo,
                watch_bonus_repo=self.watch_bonus_repo,
            ),
            config=anti_cheat,
            clock=self.clock,
        )
        self.progress_service = ProgressService(
            user_repo=self.user_repo,
            action_repo=self.action_repo,
            like_repo=self.like_repo,
            watch_bonus_repo=self.watch_bonus_repo,
            achievement_repo=self.achievement_repo,
            validator=self.validator,
            network_guard=NetworkGuard(self.action_repo, anti_cheat, clock=self.clock),
            xp_calculator=XPCalculator(clock=self.clock),
            achievement_engine=AchievementEngine(),
            clock=self.clock,
            history_window_hours=anti_cheat.history_window_hours,
        )
        self.watch_sessions = WatchSessionManager(self.config.engagement, clock=self.clock)
        logger.info("Services initialized")

        # Load cogs
        await self.load_extension("reelup.cogs.progress")
        await self.load_extension("reelup.cogs.activity")
        logger.info("Cogs loaded")

        # Sync commands if configured
        if self.config.discord.sync_commands_on_startup:
            await self.tree.sync()
            logger.info("Commands synced")

        # Set up global error handler for app commands
        self.tree.on_error = self.on_app_command_error

    async def on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        """Global error handler for app commands."""
        if isinstance(error, app_commands.CommandInvokeError):
            original = error.original
            if isinstance(original, discord.NotFound):
                logger.warning(f"Interaction not found (expired): {error}")
                return

        logger.error(f"App command error: {error}", exc_info=error)

        # Try to respond to the user
        try:
            if interaction.response.is_done():
                await interaction.followup.send(ERROR_GENERIC, ephemeral=True)
            else:
                await interaction.response.send_message(ERROR_GENERIC, ephemeral=True)
        except discord.NotFound:
            # Interaction expired, can't respond
            pass
        except Exception as e:
            logger.error(f"Failed to send error response: {e}")

    async def on_ready(self) -> None:
        """Called when the bot is ready."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

        activity = discord.Activity(
            type=discord.ActivityType.watching,
            name="/watch, /progress, /achievements",
        )
        await self.change_presence(activity=activity)

    async def close(self) -> None:
        """Clean up on shutdown."""
        logger.info("Shutting down reelup bot...")

        if self.watch_sessions:
            # Record whatever was being watched when the bot went down
            activity_cog = self.get_cog("ActivityCog")
            if activity_cog is not None:
                for session, metrics in await self.watch_sessions.stop_all():
                    try:
                        await activity_cog.finish_session(session, metrics)
                    except Exception as e:
                        logger.error(f"Failed to record watch session on shutdown: {e}")

        if self.database:
            await self.database.close()
            logger.info("Database closed")

        await super().close()


def create_bot(config_path: str = "config.yaml") -> ReelupBot:
    """Create and configure a ReelupBot instance.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configured ReelupBot instance
    """
    config = load_config(config_path)
    return ReelupBot(config)
