"""Watch bonus repository for watch-time bonuses already paid out."""

from typing import List, Optional

from ..mappers import row_to_watch_bonus
from ..models import WatchBonusRecord
from .base import BaseRepository


class WatchBonusRepository(BaseRepository):
    """Repository for watch-time bonus operations."""

    async def get_last_rewarded_minutes(self, user_id: int, video_id: str) -> Optional[int]:
        """Get the highest watch-time mark already rewarded for a video.

        Args:
            user_id: Internal user ID
            video_id: Video being watched

        Returns:
            Minutes of the highest rewarded mark, or None if none was rewarded
        """
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT MAX(watch_time_minutes) AS last_minutes FROM user_watch_bonuses
            WHERE user_id = ? AND video_id = ?
            """,
            (user_id, video_id),
        )
        row = await cursor.fetchone()
        return row["last_minutes"] if row else None

    async def record(self, user_id: int, video_id: str, watch_time_minutes: int, bonus_xp: int) -> int:
        """Record a paid-out watch bonus.

        Returns:
            ID of the new row
        """
        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO user_watch_bonuses (user_id, video_id, watch_time_minutes, bonus_xp)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, video_id, watch_time_minutes, bonus_xp),
            )
        return cursor.lastrowid

    async def get_for_video(self, user_id: int, video_id: str) -> List[WatchBonusRecord]:
        """Get every bonus paid for a video, lowest mark first."""
        conn = self.connection
        cursor = await conn.execute(
            """
            SELECT * FROM user_watch_bonuses
            WHERE user_id = ? AND video_id = ?
            ORDER BY watch_time_minutes ASC
            """,
            (user_id, video_id),
        )
        rows = await cursor.fetchall()
        return [row_to_watch_bonus(row) for row in rows]
