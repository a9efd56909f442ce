"""Activity cog: likes, watch sessions, quizzes, notes, challenges and courses."""

import asyncio
import logging
from typing import Optional, TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from ..constants import (
    ERROR_GENERIC,
    ERROR_NO_SESSION,
    SESSION_CLEANUP_INTERVAL,
    WATCH_TICK_INTERVAL,
)
from ..ui import ProgressEmbedBuilder, format_duration
from ..utils.errors import NoActiveSessionError
from .utils import (
    defer_interaction,
    get_or_create_user_from_interaction,
    handle_slash_command_errors,
    send_outcome,
)

if TYPE_CHECKING:
    from ..bot import ReelupBot
    from ..gamification.engagement import EngagementMetrics
    from ..services.watch_session import WatchSession

logger = logging.getLogger(__name__)


def describe_metrics(metrics: "EngagementMetrics") -> str:
    """One-line summary of a finished watch session."""
    return (
        f"Watched {format_duration(metrics.actual_watch_time)} · "
        f"{metrics.video_progress:.0f}% of the video · "
        f"engagement {metrics.engagement_score:.0f}/100"
    )


class ActivityCog(commands.Cog):
    """Cog for reporting learning activity."""

    watch = app_commands.Group(name="watch", description="Track a video you are watching")

    def __init__(self, bot: "ReelupBot"):
        self.bot = bot
        self.tick_task: Optional[asyncio.Task] = None

    async def cog_load(self) -> None:
        """Start the watch-session loop."""
        self.tick_task = asyncio.create_task(self._watch_loop())

    async def cog_unload(self) -> None:
        """Stop the watch-session loop."""
        if self.tick_task is not None:
            self.tick_task.cancel()
            self.tick_task = None

    # ==================== Likes & content ====================

    @app_commands.command(name="like", description="Like a video")
    @app_commands.describe(video="ID of the video to like")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/like")
    async def like(self, interaction: discord.Interaction, video: str):
        """Like a video (once per video)."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        outcome = await self.bot.progress_service.like_video(user, video)
        await send_outcome(interaction, outcome, f"❤️ You liked `{video}`")

    @app_commands.command(name="notes", description="Mark the notes of a video as read")
    @app_commands.describe(video="ID of the video whose notes you read")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/notes")
    async def notes(self, interaction: discord.Interaction, video: str):
        """Report reading notes."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        outcome = await self.bot.progress_service.read_notes(user, video)
        await send_outcome(interaction, outcome, f"📝 Notes for `{video}` read")

    @app_commands.command(name="quiz-done", description="Report a finished quiz")
    @app_commands.describe(
        quiz="ID of the quiz",
        score="Your score in percent",
        seconds="How many seconds the quiz took",
        questions="Number of questions (default 5)",
    )
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/quiz-done")
    async def quiz_done(
        self,
        interaction: discord.Interaction,
        quiz: str,
        score: app_commands.Range[float, 0, 100],
        seconds: app_commands.Range[int, 0],
        questions: Optional[app_commands.Range[int, 1, 100]] = None,
    ):
        """Report a quiz completion."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        outcome = await self.bot.progress_service.complete_quiz(
            user,
            quiz_id=quiz,
            score=score,
            time_spent=seconds,
            questions_count=questions or 5,
        )
        await send_outcome(interaction, outcome, f"🧠 Quiz `{quiz}` completed with {score:.0f}%")

    @app_commands.command(name="challenge-done", description="Report a completed coding challenge")
    @app_commands.describe(challenge="ID of the challenge")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/challenge-done")
    async def challenge_done(self, interaction: discord.Interaction, challenge: str):
        """Report a challenge completion."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        outcome = await self.bot.progress_service.complete_challenge(user, challenge)
        await send_outcome(interaction, outcome, f"💻 Challenge `{challenge}` completed")

    @app_commands.command(name="course-done", description="Report a completed course")
    @app_commands.describe(course="ID of the course")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/course-done")
    async def course_done(self, interaction: discord.Interaction, course: str):
        """Report a course completion."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        outcome = await self.bot.progress_service.complete_course(user, course)
        await send_outcome(interaction, outcome, f"🎓 Course `{course}` completed")

    # ==================== Watch sessions ====================

    @watch.command(name="start", description="Start watching a video")
    @app_commands.describe(video="ID of the video")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/watch start")
    async def watch_start(self, interaction: discord.Interaction, video: str):
        """Start a watch session, finishing any previous one."""
        user = await get_or_create_user_from_interaction(self.bot.user_repo, interaction)
        manager = self.bot.watch_sessions

        previous = await manager.get(interaction.user.id)
        if previous is not None:
            await self.finish_session(*await manager.stop(interaction.user.id))

        await manager.start(
            user_id=interaction.user.id,
            db_user_id=user.id,
            video_id=video,
            channel_id=interaction.channel_id,
        )
        await interaction.followup.send(
            f"🎬 Now watching `{video}`. Bonus XP every "
            f"{self.bot.config.engagement.milestone_minutes} minutes of attentive watching!"
        )

    @watch.command(name="pause", description="Pause the video you are watching")
    @defer_interaction(thinking=True, ephemeral=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/watch pause")
    async def watch_pause(self, interaction: discord.Interaction):
        """Pause the current session."""
        try:
            metrics = await self.bot.watch_sessions.set_playing(interaction.user.id, False)
        except NoActiveSessionError:
            await interaction.followup.send(ERROR_NO_SESSION, ephemeral=True)
            return
        await interaction.followup.send(f"⏸️ Paused. {describe_metrics(metrics)}", ephemeral=True)

    @watch.command(name="resume", description="Resume the video you are watching")
    @defer_interaction(thinking=True, ephemeral=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/watch resume")
    async def watch_resume(self, interaction: discord.Interaction):
        """Resume the current session."""
        try:
            metrics = await self.bot.watch_sessions.set_playing(interaction.user.id, True)
        except NoActiveSessionError:
            await interaction.followup.send(ERROR_NO_SESSION, ephemeral=True)
            return
        await interaction.followup.send(f"▶️ Resumed. {describe_metrics(metrics)}", ephemeral=True)

    @watch.command(name="stop", description="Finish watching and collect your XP")
    @app_commands.describe(progress="How far into the video you got, in percent")
    @defer_interaction(thinking=True)
    @handle_slash_command_errors(error_message=ERROR_GENERIC, context="/watch stop")
    async def watch_stop(
        self,
        interaction: discord.Interaction,
        progress: Optional[app_commands.Range[float, 0, 100]] = None,
    ):
        """Stop the current session and record the watch."""
        manager = self.bot.watch_sessions
        try:
            if progress is not None:
                await manager.update_progress(interaction.user.id, progress)
            session, metrics = await manager.stop(interaction.user.id)
        except NoActiveSessionError:
            await interaction.followup.send(ERROR_NO_SESSION, ephemeral=True)
            return

        outcome = await self.finish_session(session, metrics)
        if outcome is None:
            await interaction.followup.send(ERROR_GENERIC, ephemeral=True)
            return
        summary = f"🎬 `{session.video_id}`: {describe_metrics(metrics)}"
        bonuses = await self.bot.watch_bonus_repo.get_for_video(
            session.db_user_id, session.video_id
        )
        if bonuses:
            marks = ", ".join(f"{b.watch_time_minutes}m" for b in bonuses)
            total = sum(b.bonus_xp for b in bonuses)
            summary += f"\nWatch bonuses on this video: {marks} (+{total} XP)"
        await send_outcome(interaction, outcome, summary)

    async def finish_session(self, session: "WatchSession", metrics: "EngagementMetrics"):
        """Record a stopped session as a video_watch action."""
        user = await self.bot.user_repo.get_by_id(session.db_user_id)
        if user is None:
            logger.warning(f"Watch session for unknown user {session.db_user_id}")
            return None
        return await self.bot.progress_service.record_video_watch(
            user, session.video_id, metrics
        )

    # ==================== Background Tasks ====================

    async def _watch_loop(self):
        """Background task that ticks watch sessions and pays milestone bonuses."""
        manager = self.bot.watch_sessions
        since_cleanup = 0.0

        try:
            while True:
                await asyncio.sleep(WATCH_TICK_INTERVAL)

                try:
                    for session, milestone in await manager.tick_all():
                        await self._claim_milestone(session, milestone.watch_time_minutes)

                    since_cleanup += WATCH_TICK_INTERVAL
                    if since_cleanup >= SESSION_CLEANUP_INTERVAL:
                        since_cleanup = 0.0
                        for session, metrics in await manager.cleanup_expired():
                            await self.finish_session(session, metrics)
                except Exception as e:
                    logger.error(f"Error ticking watch sessions: {e}", exc_info=True)
                    # Keep ticking even if one iteration fails

        except asyncio.CancelledError:
            logger.info("Watch loop cancelled")

    async def _claim_milestone(self, session: "WatchSession", minutes: int) -> None:
        """Claim the watch bonus for a milestone and announce it.

        A claim rejected only by the cooldown stays pending and is retried
        once the cooldown has passed; any other outcome settles it.
        """
        manager = self.bot.watch_sessions
        user = await self.bot.user_repo.get_by_id(session.db_user_id)
        if user is None:
            await manager.settle_milestone(session, minutes)
            return

        outcome = await self.bot.progress_service.claim_watch_bonus(
            user, session.video_id, minutes
        )
        if not outcome.accepted:
            retry_after_ms = outcome.validation.cooldown_remaining
            await manager.settle_milestone(session, minutes, retry_after_ms=retry_after_ms)
            if retry_after_ms:
                logger.info(
                    f"Watch bonus for user {user.id} at {minutes} min retrying in {retry_after_ms} ms"
                )
            else:
                logger.info(
                    f"Watch bonus for user {user.id} at {minutes} min not granted: "
                    f"{outcome.validation.reason}"
                )
            return
        await manager.settle_milestone(session, minutes)

        channel = self.bot.get_channel(session.channel_id) if session.channel_id else None
        embed = ProgressEmbedBuilder.create_outcome_embed(outcome)
        if channel is None or embed is None:
            return
        try:
            await channel.send(content=f"<@{session.user_id}>", embed=embed)
        except discord.HTTPException as e:
            logger.warning(f"Could not announce watch bonus in {session.channel_id}: {e}")


async def setup(bot: "ReelupBot"):
    """Set up the Activity cog."""
    await bot.add_cog(ActivityCog(bot))
