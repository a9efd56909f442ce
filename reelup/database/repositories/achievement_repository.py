"""Achievement repository: first-unlock timestamps."""

import logging
from datetime import datetime
from typing import Dict, Optional

from ..mappers import row_to_unlocked_achievement
from .base import BaseRepository

logger = logging.getLogger(__name__)


class AchievementRepository(BaseRepository):
    """Repository for the achievement unlock cache.

    Whether an achievement is unlocked is always recomputed from stats;
    this table only remembers when it first happened.
    """

    async def get_unlocked(self, user_id: int) -> Dict[str, Optional[datetime]]:
        """Get recorded unlocks for a user.

        Args:
            user_id: Internal user ID

        Returns:
            Dict mapping achievement_id to its first-unlock time
        """
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM user_achievements WHERE user_id = ? ORDER BY unlocked_at",
            (user_id,),
        )
        rows = await cursor.fetchall()
        unlocked = [row_to_unlocked_achievement(row) for row in rows]
        return {item.achievement_id: item.unlocked_at for item in unlocked}

    async def record_unlock(
        self,
        user_id: int,
        achievement_id: str,
        unlocked_at: Optional[datetime] = None,
    ) -> bool:
        """Record an unlock if it is not already recorded.

        Args:
            user_id: Internal user ID
            achievement_id: Achievement identifier
            unlocked_at: Unlock time (defaults to now)

        Returns:
            True if this call recorded the unlock, False if it already existed
        """
        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT OR IGNORE INTO user_achievements (user_id, achievement_id, unlocked_at)
                VALUES (?, ?, ?)
                """,
                (user_id, achievement_id, (unlocked_at or datetime.now()).isoformat(sep=" ")),
            )
        recorded = cursor.rowcount > 0
        if recorded:
            logger.info(f"User {user_id} unlocked achievement {achievement_id}")
        return recorded
