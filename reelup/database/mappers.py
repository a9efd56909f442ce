"""Row-to-model mappers for database operations."""

import json
from datetime import datetime
from typing import Any, Optional

from ..gamification.actions import ActionKind, UserAction, parse_metadata
from .models import UnlockedAchievement, User, ValidationFailure, WatchBonusRecord


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a datetime value from SQLite.

    SQLite stores datetimes as strings in ISO format.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        # SQLite stores in ISO format: "YYYY-MM-DD HH:MM:SS.ffffff" or "YYYY-MM-DD HH:MM:SS"
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _parse_json(value: Any) -> dict:
    """Parse a JSON column, treating missing or malformed data as empty."""
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def row_to_user(row: Any) -> User:
    """Convert database row to User model."""
    return User(
        id=row["id"],
        discord_id=row["discord_id"],
        username=row["username"],
        total_xp=row["total_xp"] or 0,
        videos_watched=row["videos_watched"] or 0,
        videos_liked=row["videos_liked"] or 0,
        current_streak=row["current_streak"] or 0,
        best_streak=row["best_streak"] or 0,
        time_spent=row["time_spent"] or 0,
        early_bird_sessions=row["early_bird_sessions"] or 0,
        night_owl_sessions=row["night_owl_sessions"] or 0,
        weekend_sessions=row["weekend_sessions"] or 0,
        last_activity_date=row["last_activity_date"],
        created_at=_parse_datetime(row["created_at"]),
        last_active=_parse_datetime(row["last_active"]),
    )


def row_to_user_action(row: Any) -> Optional[UserAction]:
    """Convert database row to UserAction.

    Rows with an action type this version does not know are skipped
    (returns None).
    """
    kind = ActionKind.parse(row["action_type"])
    if kind is None:
        return None
    return UserAction(
        user_id=str(row["user_id"]),
        action=kind,
        timestamp=row["timestamp_ms"],
        video_id=row["video_id"],
        quiz_id=row["quiz_id"],
        challenge_id=row["challenge_id"],
        module_id=row["module_id"],
        course_id=row["course_id"],
        metadata=parse_metadata(kind, _parse_json(row["metadata"])),
    )


def row_to_watch_bonus(row: Any) -> WatchBonusRecord:
    """Convert database row to WatchBonusRecord model."""
    return WatchBonusRecord(
        id=row["id"],
        user_id=row["user_id"],
        video_id=row["video_id"],
        watch_time_minutes=row["watch_time_minutes"],
        bonus_xp=row["bonus_xp"] or 0,
        created_at=_parse_datetime(row["created_at"]),
    )


def row_to_unlocked_achievement(row: Any) -> UnlockedAchievement:
    """Convert database row to UnlockedAchievement model."""
    return UnlockedAchievement(
        user_id=row["user_id"],
        achievement_id=row["achievement_id"],
        unlocked_at=_parse_datetime(row["unlocked_at"]),
    )


def row_to_validation_failure(row: Any) -> ValidationFailure:
    """Convert database row to ValidationFailure model."""
    return ValidationFailure(
        id=row["id"],
        user_id=row["user_id"],
        action_type=row["action_type"],
        reason=row["reason"],
        timestamp_ms=row["timestamp_ms"],
        source_address=row["source_address"],
        metadata=row["metadata"],
    )
