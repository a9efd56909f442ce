"""Anti-cheat gate run before any XP is granted for a reported action."""

import logging
import math
from typing import Dict, List, Optional, Protocol, Sequence, TYPE_CHECKING

from ..gamification.actions import (
    ActionKind,
    QuizMetadata,
    UserAction,
    ValidationResult,
    WatchBonusMetadata,
)
from ..utils.clock import SYSTEM_CLOCK, Clock
from ..utils.fallback import best_effort

if TYPE_CHECKING:
    from ..config import AntiCheatConfig
    from ..database.repositories import (
        ActionRepository,
        LikeRepository,
        WatchBonusRepository,
    )

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000

# Minimum gap between two actions of the same kind (ms); 0 means none
DEFAULT_COOLDOWNS_MS: Dict[ActionKind, int] = {
    ActionKind.VIDEO_LIKE: 3000,
    ActionKind.VIDEO_WATCH: 0,
    ActionKind.QUIZ_COMPLETE: 120000,
    ActionKind.CHALLENGE_COMPLETE: 300000,
    ActionKind.NOTES_READ: 10000,
    ActionKind.COURSE_COMPLETE: 3600000,
    ActionKind.WATCH_BONUS: 120000,
}

# 0 means unlimited
DEFAULT_HOURLY_LIMITS: Dict[ActionKind, int] = {
    ActionKind.VIDEO_LIKE: 30,
    ActionKind.VIDEO_WATCH: 0,
    ActionKind.QUIZ_COMPLETE: 5,
    ActionKind.CHALLENGE_COMPLETE: 3,
    ActionKind.NOTES_READ: 50,
    ActionKind.COURSE_COMPLETE: 1,
    ActionKind.WATCH_BONUS: 30,
}

DEFAULT_DAILY_LIMITS: Dict[ActionKind, int] = {
    ActionKind.VIDEO_LIKE: 100,
    ActionKind.VIDEO_WATCH: 0,
    ActionKind.QUIZ_COMPLETE: 15,
    ActionKind.CHALLENGE_COMPLETE: 10,
    ActionKind.NOTES_READ: 200,
    ActionKind.COURSE_COMPLETE: 3,
    ActionKind.WATCH_BONUS: 720,
}

# Like-pattern thresholds
RAPID_LIKE_WINDOW_MS = 10000
RAPID_LIKE_MAX = 5
PATTERN_SAMPLE_SIZE = 10
MIN_LIKE_GAP_MS = 1000

# Action-specific thresholds
MIN_WATCH_BONUS_MINUTES = 2
WATCH_BONUS_INTERVAL_MINUTES = 2
MIN_SECONDS_PER_QUESTION = 10

# Rejection messages
REASON_INVALID_VIDEO = "Invalid video ID"
REASON_ALREADY_LIKED = "You've already liked this video! ❤️"
REASON_COOLDOWN = "Please wait {seconds} seconds before performing this action again"
REASON_HOURLY = "You've reached the hourly limit for this action ({limit} per hour)"
REASON_DAILY = "You've reached the daily limit for this action ({limit} per day)"
REASON_RAPID_LIKES = "You're liking videos too quickly! Please slow down 😊"
REASON_LIKE_GAP = "Please take a moment between likes 💙"
REASON_INVALID_WATCH_BONUS = "Invalid watch bonus data"
REASON_WATCH_LONGER = "Watch for at least 2 minutes to earn bonus points"
REASON_BONUS_CLAIMED = "You already received a bonus for this time period"
REASON_INVALID_QUIZ = "Invalid quiz completion data"
REASON_QUIZ_TOO_FAST = "You completed the quiz too quickly"


class ValidationStore(Protocol):
    """Reads the validator needs from persistent storage."""

    async def has_liked(self, user_id: str, video_id: str) -> bool:
        ...

    async def get_daily_count(self, user_id: str, action_type: str, action_date: str) -> int:
        ...

    async def get_last_rewarded_minutes(self, user_id: str, video_id: str) -> Optional[int]:
        ...


class RepositoryValidationStore:
    """ValidationStore backed by the SQLite repositories."""

    def __init__(
        self,
        like_repo: "LikeRepository",
        action_repo: "ActionRepository",
        watch_bonus_repo: "WatchBonusRepository",
    ):
        self.like_repo = like_repo
        self.action_repo = action_repo
        self.watch_bonus_repo = watch_bonus_repo

    async def has_liked(self, user_id: str, video_id: str) -> bool:
        return await self.like_repo.has_liked(int(user_id), video_id)

    async def get_daily_count(self, user_id: str, action_type: str, action_date: str) -> int:
        return await self.action_repo.get_daily_count(int(user_id), action_type, action_date)

    async def get_last_rewarded_minutes(self, user_id: str, video_id: str) -> Optional[int]:
        return await self.watch_bonus_repo.get_last_rewarded_minutes(int(user_id), video_id)


def _merge_limits(defaults: Dict[ActionKind, int], overrides: Optional[Dict[str, int]]) -> Dict[ActionKind, int]:
    """Apply per-kind overrides (keyed by kind name) on top of a default table."""
    merged = dict(defaults)
    for name, value in (overrides or {}).items():
        kind = ActionKind.parse(name)
        if kind is None:
            logger.warning(f"Ignoring limit override for unknown action kind: {name}")
            continue
        merged[kind] = int(value)
    return merged


class ActionValidator:
    """Decides whether a reported action may be rewarded.

    Checks run in a fixed order and the first failure wins. Reads against
    the store fail open: if the store cannot answer, the check passes.
    Only real rule violations reject an action.
    """

    def __init__(
        self,
        store: ValidationStore,
        config: Optional["AntiCheatConfig"] = None,
        clock: Clock = None,
    ):
        self.store = store
        self.clock = clock or SYSTEM_CLOCK
        self.cooldowns_ms = _merge_limits(
            DEFAULT_COOLDOWNS_MS, config.cooldowns_ms if config else None
        )
        self.hourly_limits = _merge_limits(
            DEFAULT_HOURLY_LIMITS, config.hourly_limits if config else None
        )
        self.daily_limits = _merge_limits(
            DEFAULT_DAILY_LIMITS, config.daily_limits if config else None
        )

    async def validate_action(
        self,
        action: UserAction,
        recent_actions: Sequence[UserAction],
    ) -> ValidationResult:
        """Validate one reported action against the user's recent history.

        Args:
            action: The action being reported
            recent_actions: The user's recent actions (any order)

        Returns:
            ValidationResult; rejections carry a user-facing reason
        """
        # Watching is never throttled
        if action.action == ActionKind.VIDEO_WATCH:
            return ValidationResult.ok()

        similar = self._similar_actions(action, recent_actions)

        if action.action == ActionKind.VIDEO_LIKE:
            result = await self._check_duplicate_like(action)
            if not result.valid:
                return self._rejected(action, result)

        for check in (
            self._check_cooldown(action, similar),
            self._check_hourly_limit(action, similar),
        ):
            if not check.valid:
                return self._rejected(action, check)

        result = await self._check_daily_limit(action)
        if not result.valid:
            return self._rejected(action, result)

        result = self._check_patterns(action, similar)
        if not result.valid:
            return self._rejected(action, result)

        result = await self._check_specific(action)
        if not result.valid:
            return self._rejected(action, result)

        return ValidationResult.ok()

    # ==================== Checks ====================

    @staticmethod
    def _similar_actions(action: UserAction, recent_actions: Sequence[UserAction]) -> List[UserAction]:
        """Same user, same kind, newest first."""
        return sorted(
            (
                a for a in recent_actions
                if a.action == action.action and a.user_id == action.user_id
            ),
            key=lambda a: a.timestamp,
            reverse=True,
        )

    async def _check_duplicate_like(self, action: UserAction) -> ValidationResult:
        if not action.video_id:
            return ValidationResult.reject(REASON_INVALID_VIDEO)

        already_liked = await best_effort(
            lambda: self.store.has_liked(action.user_id, action.video_id),
            default=False,
            context="duplicate like",
        )
        if already_liked:
            return ValidationResult.reject(REASON_ALREADY_LIKED)
        return ValidationResult.ok()

    def _check_cooldown(self, action: UserAction, similar: List[UserAction]) -> ValidationResult:
        cooldown = self.cooldowns_ms.get(action.action, 0)
        if cooldown <= 0 or not similar:
            return ValidationResult.ok()

        elapsed = action.timestamp - similar[0].timestamp
        if elapsed < cooldown:
            remaining = cooldown - elapsed
            return ValidationResult.reject(
                REASON_COOLDOWN.format(seconds=math.ceil(remaining / 1000)),
                cooldown_remaining=remaining,
            )
        return ValidationResult.ok()

    def _check_hourly_limit(self, action: UserAction, similar: List[UserAction]) -> ValidationResult:
        limit = self.hourly_limits.get(action.action, 0)
        if limit <= 0:
            return ValidationResult.ok()

        one_hour_ago = action.timestamp - HOUR_MS
        count = sum(1 for a in similar if a.timestamp > one_hour_ago)
        if count >= limit:
            return ValidationResult.reject(REASON_HOURLY.format(limit=limit))
        return ValidationResult.ok()

    async def _check_daily_limit(self, action: UserAction) -> ValidationResult:
        limit = self.daily_limits.get(action.action, 0)
        if limit <= 0:
            return ValidationResult.ok()

        today = self.clock.today().isoformat()
        count = await best_effort(
            lambda: self.store.get_daily_count(action.user_id, action.action.value, today),
            default=0,
            context="daily limit",
        )
        if (count or 0) >= limit:
            return ValidationResult.reject(REASON_DAILY.format(limit=limit))
        return ValidationResult.ok()

    def _check_patterns(self, action: UserAction, similar: List[UserAction]) -> ValidationResult:
        if action.action != ActionKind.VIDEO_LIKE:
            return ValidationResult.ok()

        sample = similar[:PATTERN_SAMPLE_SIZE]
        window_start = action.timestamp - RAPID_LIKE_WINDOW_MS
        rapid = [a for a in sample if a.timestamp > window_start]
        if len(rapid) > RAPID_LIKE_MAX:
            return ValidationResult.reject(REASON_RAPID_LIKES)

        if sample and action.timestamp - sample[0].timestamp < MIN_LIKE_GAP_MS:
            return ValidationResult.reject(REASON_LIKE_GAP)
        return ValidationResult.ok()

    async def _check_specific(self, action: UserAction) -> ValidationResult:
        if action.action == ActionKind.WATCH_BONUS:
            return await self._check_watch_bonus(action)
        if action.action == ActionKind.QUIZ_COMPLETE:
            return self._check_quiz(action)
        # video_like: reserved for watch-time-gated liking
        return ValidationResult.ok()

    async def _check_watch_bonus(self, action: UserAction) -> ValidationResult:
        metadata = action.metadata
        minutes = metadata.watch_time_minutes if isinstance(metadata, WatchBonusMetadata) else None
        if not action.video_id or not minutes:
            return ValidationResult.reject(REASON_INVALID_WATCH_BONUS)

        if minutes < MIN_WATCH_BONUS_MINUTES:
            return ValidationResult.reject(REASON_WATCH_LONGER)

        last_rewarded = await best_effort(
            lambda: self.store.get_last_rewarded_minutes(action.user_id, action.video_id),
            default=None,
            context="watch bonus interval",
        )
        if last_rewarded is not None and minutes - last_rewarded < WATCH_BONUS_INTERVAL_MINUTES:
            return ValidationResult.reject(REASON_BONUS_CLAIMED)
        return ValidationResult.ok()

    @staticmethod
    def _check_quiz(action: UserAction) -> ValidationResult:
        metadata = action.metadata
        if (
            not isinstance(metadata, QuizMetadata)
            or metadata.score is None
            or metadata.time_spent is None
        ):
            return ValidationResult.reject(REASON_INVALID_QUIZ)

        questions = metadata.questions_count or 5
        if metadata.time_spent < questions * MIN_SECONDS_PER_QUESTION:
            return ValidationResult.reject(REASON_QUIZ_TOO_FAST)
        return ValidationResult.ok()

    @staticmethod
    def _rejected(action: UserAction, result: ValidationResult) -> ValidationResult:
        logger.info(
            f"Rejected {action.action.value} from user {action.user_id}: {result.reason}"
        )
        return result
