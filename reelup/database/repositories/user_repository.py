"""User repository for user-related database operations."""

import logging
from datetime import datetime
from typing import Optional

from ..mappers import row_to_user
from ..models import User
from .base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):
    """Repository for user operations."""

    async def get_or_create(self, discord_id: str, username: str) -> User:
        """Get existing user or create new one."""
        conn = self.connection

        # Try to get existing user
        cursor = await conn.execute(
            "SELECT * FROM users WHERE discord_id = ?", (discord_id,)
        )
        row = await cursor.fetchone()

        if row:
            # Update last_active and username
            async with self.db.transaction() as tx:
                await tx.execute(
                    "UPDATE users SET last_active = CURRENT_TIMESTAMP, username = ? WHERE discord_id = ?",
                    (username, discord_id),
                )
            user = row_to_user(row)
            user.username = username
            user.last_active = datetime.now()
            return user

        # Create new user
        async with self.db.transaction() as tx:
            cursor = await tx.execute(
                "INSERT INTO users (discord_id, username) VALUES (?, ?)",
                (discord_id, username),
            )
        logger.info(f"Created user {username} ({discord_id})")

        return User(
            id=cursor.lastrowid,
            discord_id=discord_id,
            username=username,
            created_at=datetime.now(),
            last_active=datetime.now(),
        )

    async def get_by_discord_id(self, discord_id: str) -> Optional[User]:
        """Get user by Discord ID."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT * FROM users WHERE discord_id = ?", (discord_id,)
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return row_to_user(row)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by internal ID."""
        conn = self.connection
        cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = await cursor.fetchone()
        return row_to_user(row) if row else None

    async def save_progress(self, user: User) -> None:
        """Persist a user's counters, streak and XP total.

        Args:
            user: User whose progress fields should be written back
        """
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                UPDATE users SET
                    total_xp = ?,
                    videos_watched = ?,
                    videos_liked = ?,
                    current_streak = ?,
                    best_streak = ?,
                    time_spent = ?,
                    early_bird_sessions = ?,
                    night_owl_sessions = ?,
                    weekend_sessions = ?,
                    last_activity_date = ?,
                    last_active = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (
                    user.total_xp,
                    user.videos_watched,
                    user.videos_liked,
                    user.current_streak,
                    user.best_streak,
                    user.time_spent,
                    user.early_bird_sessions,
                    user.night_owl_sessions,
                    user.weekend_sessions,
                    user.last_activity_date,
                    user.id,
                ),
            )
