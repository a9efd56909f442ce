"""Progress service: validates actions, awards XP and tracks achievements."""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, TYPE_CHECKING

from ..gamification.achievements import (
    Achievement,
    AchievementEngine,
    AchievementProgress,
    UserStats,
)
from ..gamification.actions import (
    ActionKind,
    EmptyMetadata,
    QuizMetadata,
    UserAction,
    ValidationResult,
    VideoWatchMetadata,
    WatchBonusMetadata,
    metadata_to_dict,
)
from ..gamification.engagement import EngagementMetrics
from ..gamification.notifications import Notification, build_notifications
from ..gamification.xp import (
    EARLY_BIRD_NAME,
    NIGHT_OWL_NAME,
    WEEKEND_BONUS_NAME,
    LevelInfo,
    StreakBonus,
    XPAward,
    XPCalculator,
    XPContext,
)
from ..utils.clock import SYSTEM_CLOCK, Clock
from ..utils.errors import UserNotFoundError
from ..utils.fallback import best_effort
from .action_validator import REASON_ALREADY_LIKED

if TYPE_CHECKING:
    from ..database.models import User
    from ..database.repositories import (
        AchievementRepository,
        ActionRepository,
        LikeRepository,
        UserRepository,
        WatchBonusRepository,
    )
    from .action_validator import ActionValidator
    from .network_guard import NetworkGuard

logger = logging.getLogger(__name__)

# Which target ID makes an action "the same thing done again"
FIRST_TIME_TARGETS = {
    ActionKind.VIDEO_WATCH: "video_id",
    ActionKind.CHALLENGE_COMPLETE: "challenge_id",
    ActionKind.COURSE_COMPLETE: "course_id",
}


@dataclass
class ActionOutcome:
    """Result of reporting one action."""

    validation: ValidationResult
    award: Optional[XPAward] = None
    old_level: Optional[int] = None
    new_level: Optional[int] = None
    leveled_up: bool = False
    new_achievements: List[Achievement] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    total_xp: Optional[int] = None
    current_streak: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.validation.valid


def next_streak(last_activity_date: Optional[str], current_streak: int, today: date) -> int:
    """Compute the activity streak after acting on ``today``.

    Args:
        last_activity_date: ISO date of the previous active day, if any
        current_streak: Streak before this action
        today: Date of this action

    Returns:
        Unchanged on the same day, +1 the day after, otherwise 1
    """
    if last_activity_date:
        try:
            last = date.fromisoformat(last_activity_date)
        except ValueError:
            last = None
        if last == today:
            return max(current_streak, 1)
        if last == today - timedelta(days=1):
            return current_streak + 1
    return 1


class ProgressService:
    """Service that turns reported actions into progress.

    Every action goes through the network guard and the validator before
    anything is written. Accepted actions are logged, counted and
    rewarded; rejected ones are recorded for review.
    """

    def __init__(
        self,
        user_repo: "UserRepository",
        action_repo: "ActionRepository",
        like_repo: "LikeRepository",
        watch_bonus_repo: "WatchBonusRepository",
        achievement_repo: "AchievementRepository",
        validator: "ActionValidator",
        network_guard: Optional["NetworkGuard"] = None,
        xp_calculator: Optional[XPCalculator] = None,
        achievement_engine: Optional[AchievementEngine] = None,
        clock: Clock = None,
        history_window_hours: int = 2,
    ):
        self.user_repo = user_repo
        self.action_repo = action_repo
        self.like_repo = like_repo
        self.watch_bonus_repo = watch_bonus_repo
        self.achievement_repo = achievement_repo
        self.validator = validator
        self.network_guard = network_guard
        self.clock = clock or SYSTEM_CLOCK
        self.xp_calculator = xp_calculator or XPCalculator(clock=self.clock)
        self.achievement_engine = achievement_engine or AchievementEngine()
        self.history_window_ms = history_window_hours * 60 * 60 * 1000
        self._user_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ==================== Reporting ====================

    async def record_action(
        self,
        user: "User",
        action: UserAction,
        source_address: Optional[str] = None,
    ) -> ActionOutcome:
        """Validate an action and, if accepted, apply its rewards.

        Args:
            user: The acting user
            action: The reported action (user_id must be str(user.id))
            source_address: Network address the action came from, if known

        Returns:
            ActionOutcome; rejected outcomes carry only the validation result
        """
        async with self._user_locks[user.id]:
            # Slash commands carry no source address, so only callers that know one are limited
            if self.network_guard is not None:
                network_result = await self.network_guard.check(source_address)
                if not network_result.valid:
                    await self._log_failure(user, action, network_result, source_address)
                    return ActionOutcome(validation=network_result)

            recent = await best_effort(
                lambda: self.action_repo.get_recent(
                    user.id, self.clock.now_ms() - self.history_window_ms
                ),
                default=[],
                context="recent actions",
            )
            validation = await self.validator.validate_action(action, recent)
            if not validation.valid:
                await self._log_failure(user, action, validation, source_address)
                return ActionOutcome(validation=validation)

            return await self._apply(user, action, source_address)

    async def _apply(
        self,
        user: "User",
        action: UserAction,
        source_address: Optional[str],
    ) -> ActionOutcome:
        """Write an accepted action and compute its rewards."""
        # One transaction: a failed write leaves no like, log row or XP behind
        async with self.action_repo.db.transaction():
            # Re-read so counters reflect anything committed since the caller loaded the user
            user = await self.user_repo.get_by_id(user.id) or user
            kind = action.action

            if kind == ActionKind.VIDEO_LIKE:
                if not await self.like_repo.add_like(user.id, action.video_id):
                    # Lost a race with a concurrent like of the same video
                    rejection = ValidationResult.reject(REASON_ALREADY_LIKED)
                    await self._log_failure(user, action, rejection, source_address)
                    return ActionOutcome(validation=rejection)

            is_first_time = await self._is_first_time(user.id, action)

            old_xp = user.total_xp
            old_streak = user.current_streak
            today = self.clock.today()
            user.current_streak = next_streak(user.last_activity_date, user.current_streak, today)
            user.best_streak = max(user.best_streak, user.current_streak)
            user.last_activity_date = today.isoformat()
            streak_milestone: Optional[StreakBonus] = None
            if user.current_streak != old_streak:
                streak_milestone = self.xp_calculator.get_streak_milestone(user.current_streak)

            self._update_counters(user, action, is_first_time)

            award = self._calculate_award(user, action, is_first_time)

            await self.action_repo.append(
                user.id, action, xp_awarded=award.total_xp, source_address=source_address
            )
            await self.action_repo.increment_daily_count(user.id, kind.value, today.isoformat())
            if kind == ActionKind.WATCH_BONUS:
                await self.watch_bonus_repo.record(
                    user.id,
                    action.video_id,
                    action.metadata.watch_time_minutes,
                    award.total_xp,
                )

            user.total_xp += award.total_xp
            new_achievements = await self._unlock_achievements(user)
            await self.user_repo.save_progress(user)

        old_level = self.xp_calculator.calculate_level(old_xp).level
        new_level = self.xp_calculator.calculate_level(user.total_xp).level
        leveled_up = self.xp_calculator.should_show_level_up(old_xp, user.total_xp)

        logger.info(
            f"User {user.id} {kind.value}: +{award.total_xp} XP "
            f"(total {user.total_xp}, level {new_level}, streak {user.current_streak})"
        )
        if leveled_up:
            logger.info(f"User {user.id} leveled up: {old_level} -> {new_level}")

        return ActionOutcome(
            validation=ValidationResult.ok(),
            award=award,
            old_level=old_level,
            new_level=new_level,
            leveled_up=leveled_up,
            new_achievements=new_achievements,
            notifications=build_notifications(
                award,
                new_level=new_level,
                leveled_up=leveled_up,
                new_achievements=new_achievements,
                streak_milestone=streak_milestone,
                current_streak=user.current_streak,
            ),
            total_xp=user.total_xp,
            current_streak=user.current_streak,
        )

    async def _is_first_time(self, user_id: int, action: UserAction) -> bool:
        column = FIRST_TIME_TARGETS.get(action.action)
        if column is None:
            return False
        # Decided from the log; a client-reported is_first_time is ignored
        previous = await self.action_repo.has_previous(
            user_id, action.action, **{column: getattr(action, column)}
        )
        return not previous

    def _update_counters(self, user: "User", action: UserAction, is_first_time: bool) -> None:
        metadata = action.metadata
        if action.action == ActionKind.VIDEO_LIKE:
            user.videos_liked += 1
        elif action.action == ActionKind.VIDEO_WATCH:
            if is_first_time:
                user.videos_watched += 1
            if isinstance(metadata, VideoWatchMetadata) and metadata.study_duration:
                user.time_spent += int(metadata.study_duration)

            windows = {w.name for w in self.xp_calculator.active_time_windows()}
            if EARLY_BIRD_NAME in windows:
                user.early_bird_sessions += 1
            if NIGHT_OWL_NAME in windows:
                user.night_owl_sessions += 1
            if WEEKEND_BONUS_NAME in windows:
                user.weekend_sessions += 1
        elif action.action == ActionKind.QUIZ_COMPLETE:
            if isinstance(metadata, QuizMetadata) and metadata.time_spent:
                user.time_spent += int(metadata.time_spent)

    def _calculate_award(self, user: "User", action: UserAction, is_first_time: bool) -> XPAward:
        metadata = action.metadata
        if action.action == ActionKind.WATCH_BONUS:
            return self.xp_calculator.calculate_watch_bonus(
                metadata.watch_time_minutes,
                XPContext(current_streak=user.current_streak),
            )

        context = XPContext(
            is_first_time=is_first_time,
            score=metadata.score if isinstance(metadata, QuizMetadata) else None,
            completion_rate=(
                metadata.completion_rate if isinstance(metadata, VideoWatchMetadata) else None
            ),
            current_streak=user.current_streak,
            study_duration=(
                metadata.study_duration if isinstance(metadata, VideoWatchMetadata) else None
            ),
        )
        return self.xp_calculator.calculate_xp(action.action.value, context)

    async def _unlock_achievements(self, user: "User") -> List[Achievement]:
        """Record newly unlocked achievements and add their XP to the user.

        Achievement XP can itself unlock XP milestones, so checks repeat
        until nothing new unlocks.
        """
        unlocked_at = await best_effort(
            lambda: self.achievement_repo.get_unlocked(user.id),
            default={},
            context="unlocked achievements",
        )
        unlocked_ids = set(unlocked_at)
        new_achievements: List[Achievement] = []

        while True:
            stats = self._stats_for(user, unlocked_ids)
            newly = self.achievement_engine.check_achievements(stats)
            if not newly:
                break
            for achievement in newly:
                unlocked_ids.add(achievement.id)
                recorded = await self.achievement_repo.record_unlock(
                    user.id, achievement.id, self.clock.now()
                )
                if recorded:
                    user.total_xp += achievement.xp_reward
                    new_achievements.append(achievement)

        return new_achievements

    async def _log_failure(
        self,
        user: "User",
        action: UserAction,
        result: ValidationResult,
        source_address: Optional[str],
    ) -> None:
        try:
            await self.action_repo.log_validation_failure(
                user_id=user.id,
                action_type=action.action.value,
                reason=result.reason,
                timestamp_ms=action.timestamp,
                source_address=source_address,
                metadata=metadata_to_dict(action.metadata),
            )
        except Exception as e:
            logger.warning(f"Could not log validation failure for user {user.id}: {e}")

    # ==================== Convenience wrappers ====================

    def _action(self, user: "User", kind: ActionKind, metadata=None, **targets) -> UserAction:
        return UserAction(
            user_id=str(user.id),
            action=kind,
            timestamp=self.clock.now_ms(),
            metadata=metadata if metadata is not None else EmptyMetadata(),
            **targets,
        )

    async def like_video(self, user: "User", video_id: str, source_address: Optional[str] = None) -> ActionOutcome:
        """Like a video (once per video)."""
        action = self._action(user, ActionKind.VIDEO_LIKE, video_id=video_id)
        return await self.record_action(user, action, source_address)

    async def record_video_watch(
        self,
        user: "User",
        video_id: str,
        metrics: EngagementMetrics,
        module_id: Optional[str] = None,
        source_address: Optional[str] = None,
    ) -> ActionOutcome:
        """Record a finished viewing session from its engagement metrics.

        Args:
            user: The viewer
            video_id: Watched video
            metrics: Final metrics of the session
            module_id: Module the video belongs to, if known
            source_address: Network address, if known

        Returns:
            ActionOutcome (video_watch is never throttled)
        """
        metadata = VideoWatchMetadata(
            completion_rate=metrics.video_progress,
            study_duration=int(metrics.actual_watch_time),
        )
        action = self._action(
            user, ActionKind.VIDEO_WATCH, metadata, video_id=video_id, module_id=module_id
        )
        return await self.record_action(user, action, source_address)

    async def claim_watch_bonus(
        self,
        user: "User",
        video_id: str,
        watch_time_minutes: int,
        source_address: Optional[str] = None,
    ) -> ActionOutcome:
        """Claim the bonus for a block of continuous watching."""
        action = self._action(
            user,
            ActionKind.WATCH_BONUS,
            WatchBonusMetadata(watch_time_minutes=watch_time_minutes),
            video_id=video_id,
        )
        return await self.record_action(user, action, source_address)

    async def complete_quiz(
        self,
        user: "User",
        quiz_id: Optional[str],
        score: Optional[float],
        time_spent: Optional[float],
        questions_count: int = 5,
        module_id: Optional[str] = None,
        source_address: Optional[str] = None,
    ) -> ActionOutcome:
        """Report a finished quiz.

        Args:
            user: The learner
            quiz_id: Quiz identifier
            score: Score in percent
            time_spent: Seconds spent on the quiz
            questions_count: Number of questions answered
            module_id: Module the quiz belongs to, if known
            source_address: Network address, if known

        Returns:
            ActionOutcome
        """
        action = self._action(
            user,
            ActionKind.QUIZ_COMPLETE,
            QuizMetadata(score=score, time_spent=time_spent, questions_count=questions_count),
            quiz_id=quiz_id,
            module_id=module_id,
        )
        return await self.record_action(user, action, source_address)

    async def read_notes(self, user: "User", video_id: str, source_address: Optional[str] = None) -> ActionOutcome:
        """Report that the notes for a video were read."""
        action = self._action(user, ActionKind.NOTES_READ, video_id=video_id)
        return await self.record_action(user, action, source_address)

    async def complete_challenge(
        self, user: "User", challenge_id: str, source_address: Optional[str] = None
    ) -> ActionOutcome:
        """Report a completed coding challenge."""
        action = self._action(user, ActionKind.CHALLENGE_COMPLETE, challenge_id=challenge_id)
        return await self.record_action(user, action, source_address)

    async def complete_course(
        self, user: "User", course_id: str, source_address: Optional[str] = None
    ) -> ActionOutcome:
        """Report a completed course."""
        action = self._action(user, ActionKind.COURSE_COMPLETE, course_id=course_id)
        return await self.record_action(user, action, source_address)

    # ==================== Reads ====================

    async def get_user(self, discord_id: str) -> "User":
        """Look up a user by Discord ID.

        Raises:
            UserNotFoundError: If the user never used the bot
        """
        user = await self.user_repo.get_by_discord_id(discord_id)
        if user is None:
            raise UserNotFoundError(f"No progress recorded for user {discord_id}")
        return user

    async def get_stats(self, user: "User") -> UserStats:
        """Build a stats snapshot for a user."""
        unlocked_at = await best_effort(
            lambda: self.achievement_repo.get_unlocked(user.id),
            default={},
            context="unlocked achievements",
        )
        return self._stats_for(user, unlocked_at)

    async def get_achievements(self, user: "User") -> List[AchievementProgress]:
        """Evaluate every achievement for a user.

        Unlock state comes from current stats; cached timestamps are only
        attached to achievements the stats actually unlock.
        """
        unlocked_at = await best_effort(
            lambda: self.achievement_repo.get_unlocked(user.id),
            default={},
            context="unlocked achievements",
        )
        stats = self._stats_for(user, unlocked_at)
        return self.achievement_engine.get_achievement_progress(stats, unlocked_at)

    def get_level(self, user: "User") -> LevelInfo:
        """Level and in-tier progress for a user's XP total."""
        return self.xp_calculator.calculate_level(user.total_xp)

    @staticmethod
    def _stats_for(user: "User", unlocked_ids) -> UserStats:
        return UserStats(
            total_xp=user.total_xp,
            videos_watched=user.videos_watched,
            videos_liked=user.videos_liked,
            current_streak=user.current_streak,
            best_streak=user.best_streak,
            time_spent=user.time_spent,
            early_bird_sessions=user.early_bird_sessions,
            night_owl_sessions=user.night_owl_sessions,
            weekend_sessions=user.weekend_sessions,
            unlocked_achievements=tuple(sorted(unlocked_ids)),
        )
