"""Action repository for the action log, daily counters and rejections."""

import json
import logging
from typing import Any, Dict, List, Optional

from ...gamification.actions import ActionKind, UserAction, metadata_to_dict
from ..mappers import row_to_user_action, row_to_validation_failure
from ..models import ValidationFailure
from .base import BaseRepository

logger = logging.getLogger(__name__)

# Target columns that identify "the same thing" for first-time detection
TARGET_COLUMNS = ("video_id", "quiz_id", "challenge_id", "module_id", "course_id")


class ActionRepository(BaseRepository):
    """Repository for user action operations."""

    async def append(
        self,
        user_id: int,
        action: UserAction,
        xp_awarded: int = 0,
        source_address: Optional[str] = None,
    ) -> int:
        """Append an action to the log.

        Args:
            user_id: Internal user ID
            action: The accepted action
            xp_awarded: XP granted for the action
            source_address: Network address the action came from, if known

        Returns:
            ID of the new log row
        """
        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO user_actions
                (user_id, action_type, video_id, quiz_id, challenge_id, module_id,
                 course_id, metadata, xp_awarded, source_address, timestamp_ms)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    action.action.value,
                    action.video_id,
                    action.quiz_id,
                    action.challenge_id,
                    action.module_id,
                    action.course_id,
                    json.dumps(metadata_to_dict(action.metadata)),
                    xp_awarded,
                    source_address,
                    action.timestamp,
                ),
            )
        return cursor.lastrowid

    async def get_recent(self, user_id: int, since_ms: int) -> List[UserAction]:
        """Get a user's actions at or after a point in time.

        Args:
            user_id: Internal user ID
            since_ms: Lower bound, epoch milliseconds

        Returns:
            Actions ordered oldest first
        """
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT * FROM user_actions
            WHERE user_id = ? AND timestamp_ms >= ?
            ORDER BY timestamp_ms ASC, id ASC
            """,
            (user_id, since_ms),
        )
        rows = await cursor.fetchall()
        actions = [row_to_user_action(row) for row in rows]
        return [action for action in actions if action is not None]

    async def has_previous(self, user_id: int, kind: ActionKind, **target: Optional[str]) -> bool:
        """Check whether the user already performed this kind of action on a target.

        Args:
            user_id: Internal user ID
            kind: Action kind
            **target: One or more of the target ID columns (video_id, course_id, ...)

        Returns:
            True if a matching row exists
        """
        query = "SELECT 1 FROM user_actions WHERE user_id = ? AND action_type = ?"
        params: List[Any] = [user_id, kind.value]
        for column, value in target.items():
            if column not in TARGET_COLUMNS:
                raise ValueError(f"Unknown target column: {column}")
            if value is None:
                continue
            query += f" AND {column} = ?"
            params.append(value)
        query += " LIMIT 1"

        cursor = await self.connection.execute(query, params)
        row = await cursor.fetchone()
        return row is not None

    async def get_daily_count(self, user_id: int, action_type: str, action_date: str) -> int:
        """Get how many times the user performed an action on a calendar date."""
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT count FROM user_daily_action_counts
            WHERE user_id = ? AND action_type = ? AND action_date = ?
            """,
            (user_id, action_type, action_date),
        )
        row = await cursor.fetchone()
        return row["count"] if row else 0

    async def increment_daily_count(self, user_id: int, action_type: str, action_date: str) -> None:
        """Add one to the user's counter for an action on a calendar date."""
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO user_daily_action_counts (user_id, action_type, action_date, count)
                VALUES (?, ?, ?, 1)
                ON CONFLICT(user_id, action_type, action_date) DO UPDATE SET
                    count = count + 1
                """,
                (user_id, action_type, action_date),
            )

    async def count_by_source_since(self, source_address: str, since_ms: int) -> int:
        """Count actions from a network address at or after a point in time."""
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT COUNT(*) AS total FROM user_actions
            WHERE source_address = ? AND timestamp_ms >= ?
            """,
            (source_address, since_ms),
        )
        row = await cursor.fetchone()
        return row["total"] if row else 0

    async def log_validation_failure(
        self,
        user_id: int,
        action_type: str,
        reason: Optional[str],
        timestamp_ms: int,
        source_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a rejected action for later review."""
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO validation_failures
                (user_id, action_type, reason, source_address, metadata, timestamp_ms)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    action_type,
                    reason,
                    source_address,
                    json.dumps(metadata or {}),
                    timestamp_ms,
                ),
            )

    async def get_validation_failures(self, user_id: int) -> List[ValidationFailure]:
        """Get a user's rejected actions, newest first.

        Kept for reviewing rejections; the bot itself only writes this log.
        """
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT * FROM validation_failures
            WHERE user_id = ?
            ORDER BY timestamp_ms DESC, id DESC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [row_to_validation_failure(row) for row in rows]
