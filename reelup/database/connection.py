"""SQLite database connection manager for reelup."""

import asyncio
import contextvars
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import aiosqlite


class Database:
    """Async SQLite database connection manager.

    Writes run inside ``transaction()``. Nested blocks join the outer one,
    so a group of repository writes commits once or not at all.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()
        self._in_transaction = contextvars.ContextVar(
            f"reelup_transaction_{id(self)}", default=False
        )

    async def connect(self) -> None:
        """Establish database connection and initialize schema."""
        # Ensure data directory exists
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._init_schema()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @asynccontextmanager
    async def transaction(self):
        """Group writes so they commit together.

        The outermost block holds the write lock, commits on success and
        rolls back if the body raises. Inner blocks only join it.
        """
        if self._in_transaction.get():
            yield self.connection
            return

        async with self._write_lock:
            token = self._in_transaction.set(True)
            try:
                yield self.connection
            except BaseException:
                await self.connection.rollback()
                raise
            else:
                await self.connection.commit()
            finally:
                self._in_transaction.reset(token)

    async def _init_schema(self) -> None:
        """Initialize database schema."""
        schema = """
        -- Users and their cumulative counters
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            discord_id TEXT UNIQUE NOT NULL,
            username TEXT NOT NULL,
            total_xp INTEGER DEFAULT 0,
            videos_watched INTEGER DEFAULT 0,
            videos_liked INTEGER DEFAULT 0,
            current_streak INTEGER DEFAULT 0,
            best_streak INTEGER DEFAULT 0,
            time_spent INTEGER DEFAULT 0,
            early_bird_sessions INTEGER DEFAULT 0,
            night_owl_sessions INTEGER DEFAULT 0,
            weekend_sessions INTEGER DEFAULT 0,
            last_activity_date TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_active TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- Append-only action log
        CREATE TABLE IF NOT EXISTS user_actions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            action_type TEXT NOT NULL,
            video_id TEXT,
            quiz_id TEXT,
            challenge_id TEXT,
            module_id TEXT,
            course_id TEXT,
            metadata TEXT,
            xp_awarded INTEGER DEFAULT 0,
            source_address TEXT,
            timestamp_ms INTEGER NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- One like per user per video
        CREATE TABLE IF NOT EXISTS user_likes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            video_id TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(user_id, video_id),
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- Per-day action counters
        CREATE TABLE IF NOT EXISTS user_daily_action_counts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            action_type TEXT NOT NULL,
            action_date TEXT NOT NULL,
            count INTEGER DEFAULT 0,
            UNIQUE(user_id, action_type, action_date),
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- Watch-time bonuses already paid out
        CREATE TABLE IF NOT EXISTS user_watch_bonuses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            video_id TEXT NOT NULL,
            watch_time_minutes INTEGER NOT NULL,
            bonus_xp INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- Cache of first-unlock timestamps
        CREATE TABLE IF NOT EXISTS user_achievements (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            achievement_id TEXT NOT NULL,
            unlocked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(user_id, achievement_id),
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- Rejected actions, for review
        CREATE TABLE IF NOT EXISTS validation_failures (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            action_type TEXT NOT NULL,
            reason TEXT,
            source_address TEXT,
            metadata TEXT,
            timestamp_ms INTEGER NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        -- Indexes for performance
        CREATE INDEX IF NOT EXISTS idx_user_actions_user_time ON user_actions(user_id, timestamp_ms);
        CREATE INDEX IF NOT EXISTS idx_user_actions_source_time ON user_actions(source_address, timestamp_ms);
        CREATE INDEX IF NOT EXISTS idx_user_watch_bonuses_user_video ON user_watch_bonuses(user_id, video_id);
        CREATE INDEX IF NOT EXISTS idx_validation_failures_user ON validation_failures(user_id);
        """

        await self._connection.executescript(schema)
        await self._connection.commit()
