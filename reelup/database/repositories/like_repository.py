"""Like repository: one like per user per video."""

import logging

import aiosqlite

from .base import BaseRepository

logger = logging.getLogger(__name__)


class LikeRepository(BaseRepository):
    """Repository for video likes."""

    async def has_liked(self, user_id: int, video_id: str) -> bool:
        """Check whether the user has already liked a video."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT 1 FROM user_likes WHERE user_id = ? AND video_id = ?",
            (user_id, video_id),
        )
        row = await cursor.fetchone()
        return row is not None

    async def add_like(self, user_id: int, video_id: str) -> bool:
        """Record a like.

        Args:
            user_id: Internal user ID
            video_id: Liked video

        Returns:
            True if the like was recorded, False if it already existed
        """
        async with self.db.transaction() as conn:
            try:
                await conn.execute(
                    "INSERT INTO user_likes (user_id, video_id) VALUES (?, ?)",
                    (user_id, video_id),
                )
            except aiosqlite.IntegrityError:
                logger.info(f"Duplicate like ignored: user {user_id}, video {video_id}")
                return False
        return True
