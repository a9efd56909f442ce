"""User action records and their per-kind metadata."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class ActionKind(str, Enum):
    """Kinds of reported user actions."""

    VIDEO_LIKE = "video_like"
    VIDEO_WATCH = "video_watch"
    QUIZ_COMPLETE = "quiz_complete"
    CHALLENGE_COMPLETE = "challenge_complete"
    NOTES_READ = "notes_read"
    COURSE_COMPLETE = "course_complete"
    WATCH_BONUS = "watch_bonus"

    @classmethod
    def parse(cls, value: Union[str, "ActionKind"]) -> Optional["ActionKind"]:
        """Convert a string to an ActionKind, or None if unknown."""
        if isinstance(value, ActionKind):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class VideoWatchMetadata:
    """Metadata reported with a finished viewing session."""

    completion_rate: Optional[float] = None  # percent 0-100
    study_duration: Optional[int] = None  # seconds of actual watch time
    is_first_time: Optional[bool] = None


@dataclass(frozen=True)
class QuizMetadata:
    """Metadata reported with a quiz completion."""

    score: Optional[float] = None
    time_spent: Optional[float] = None  # seconds
    questions_count: int = 5


@dataclass(frozen=True)
class WatchBonusMetadata:
    """Metadata reported with a watch-time bonus claim."""

    watch_time_minutes: Optional[int] = None


@dataclass(frozen=True)
class EmptyMetadata:
    """Metadata for kinds whose checks read no extra fields."""


ActionMetadata = Union[VideoWatchMetadata, QuizMetadata, WatchBonusMetadata, EmptyMetadata]


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    """Return the first present key, accepting camelCase and snake_case."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def parse_metadata(kind: Union[str, ActionKind], raw: Optional[Dict[str, Any]]) -> ActionMetadata:
    """Build the metadata variant for an action kind from a raw dict.

    Args:
        kind: The action kind the metadata belongs to
        raw: Raw metadata (e.g. a JSON column), may be None

    Returns:
        The typed metadata variant; missing fields are left as None
    """
    raw = raw or {}
    kind = ActionKind.parse(kind)

    if kind == ActionKind.VIDEO_WATCH:
        return VideoWatchMetadata(
            completion_rate=_pick(raw, "completion_rate", "completionRate"),
            study_duration=_pick(raw, "study_duration", "studyDuration"),
            is_first_time=_pick(raw, "is_first_time", "isFirstTime"),
        )
    if kind == ActionKind.QUIZ_COMPLETE:
        questions = _pick(raw, "questions_count", "questionsCount")
        return QuizMetadata(
            score=_pick(raw, "score"),
            time_spent=_pick(raw, "time_spent", "timeSpent"),
            questions_count=int(questions) if questions else 5,
        )
    if kind == ActionKind.WATCH_BONUS:
        return WatchBonusMetadata(
            watch_time_minutes=_pick(raw, "watch_time_minutes", "watchTimeMinutes"),
        )
    return EmptyMetadata()


def metadata_to_dict(metadata: ActionMetadata) -> Dict[str, Any]:
    """Serialize a metadata variant to a plain dict, dropping None fields."""
    return {
        key: value
        for key, value in vars(metadata).items()
        if value is not None
    }


@dataclass(frozen=True)
class UserAction:
    """An immutable, append-only record of something a user did."""

    user_id: str
    action: ActionKind
    timestamp: int  # epoch ms
    video_id: Optional[str] = None
    quiz_id: Optional[str] = None
    challenge_id: Optional[str] = None
    module_id: Optional[str] = None
    course_id: Optional[str] = None
    metadata: ActionMetadata = field(default_factory=EmptyMetadata)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of an anti-cheat check."""

    valid: bool
    reason: Optional[str] = None
    cooldown_remaining: Optional[int] = None  # ms

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str, cooldown_remaining: Optional[int] = None) -> "ValidationResult":
        return cls(valid=False, reason=reason, cooldown_remaining=cooldown_remaining)
