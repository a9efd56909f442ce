"""Manager for active video-watch sessions, one per user."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ..gamification.engagement import EngagementConfig as TrackerConfig
from ..gamification.engagement import (
    EngagementMetrics,
    EngagementMilestone,
    EngagementTracker,
)
from ..utils.clock import SYSTEM_CLOCK, Clock
from ..utils.errors import NoActiveSessionError, SessionAlreadyActiveError

if TYPE_CHECKING:
    from ..config import EngagementConfig

logger = logging.getLogger(__name__)


@dataclass
class WatchSession:
    """A user watching one video."""

    user_id: int  # Discord user ID
    db_user_id: int
    video_id: str
    tracker: EngagementTracker
    started_at: float  # epoch seconds
    last_activity: float  # epoch seconds
    channel_id: Optional[int] = None
    milestones: List[int] = field(default_factory=list)
    # Reached but not yet paid; a later mark replaces it
    pending_milestone: Optional[EngagementMilestone] = None
    retry_at: float = 0.0  # epoch seconds


def tracker_config_from(config: Optional["EngagementConfig"]) -> TrackerConfig:
    """Build the tracker's tuning from the engagement config section."""
    if config is None:
        return TrackerConfig()
    return TrackerConfig(
        tick_seconds=config.tick_seconds,
        recovery_per_tick=config.recovery_per_tick,
        away_threshold_seconds=config.away_threshold_seconds,
        max_away_penalty=config.max_away_penalty,
        milestone_minutes=config.milestone_minutes,
        milestone_min_score=config.milestone_min_score,
    )


class WatchSessionManager:
    """Keeps at most one engagement tracker per user.

    Uses an asyncio lock so slash commands and the background tick loop
    never interleave on the same session table.
    """

    def __init__(self, config: Optional["EngagementConfig"] = None, clock: Clock = None):
        self.clock = clock or SYSTEM_CLOCK
        self._tracker_config = tracker_config_from(config)
        self._timeout_seconds = (config.session_timeout_minutes if config else 180) * 60
        self._sessions: Dict[int, WatchSession] = {}
        self._lock = asyncio.Lock()

    async def start(
        self,
        user_id: int,
        db_user_id: int,
        video_id: str,
        channel_id: Optional[int] = None,
        replace: bool = True,
    ) -> WatchSession:
        """Start watching a video.

        Args:
            user_id: Discord user ID
            db_user_id: Internal user ID
            video_id: Video being watched
            channel_id: Channel to report milestones in
            replace: Stop an existing session instead of raising

        Returns:
            The new session, already playing

        Raises:
            SessionAlreadyActiveError: If the user has a session and replace is False
        """
        async with self._lock:
            existing = self._sessions.get(user_id)
            if existing is not None:
                if not replace:
                    raise SessionAlreadyActiveError(
                        f"User {user_id} is already watching {existing.video_id}"
                    )
                existing.tracker.stop_tracking()
                logger.debug(f"Replaced watch session of user {user_id} ({existing.video_id})")

            tracker = EngagementTracker(clock=self.clock, config=self._tracker_config)
            tracker.start_tracking()
            tracker.set_playing(True)

            now = self.clock.seconds()
            session = WatchSession(
                user_id=user_id,
                db_user_id=db_user_id,
                video_id=video_id,
                tracker=tracker,
                started_at=now,
                last_activity=now,
                channel_id=channel_id,
            )
            self._sessions[user_id] = session
            logger.debug(f"Started watch session for user {user_id} on {video_id}")
            return session

    async def get(self, user_id: int) -> Optional[WatchSession]:
        """Get a user's active session, or None."""
        async with self._lock:
            return self._sessions.get(user_id)

    async def set_playing(self, user_id: int, playing: bool) -> EngagementMetrics:
        """Pause or resume a user's session.

        Elapsed ticks are applied first, so time before the change is
        counted under the old play state.
        """
        async with self._lock:
            session = self._require(user_id)
            session.tracker.advance()
            session.tracker.set_playing(playing)
            session.last_activity = self.clock.seconds()
            return session.tracker.get_current_metrics()

    async def set_visibility(self, user_id: int, visible: bool) -> EngagementMetrics:
        """Report that the user left or came back to the video."""
        async with self._lock:
            session = self._require(user_id)
            session.tracker.advance()
            session.tracker.set_visibility(visible)
            session.last_activity = self.clock.seconds()
            return session.tracker.get_current_metrics()

    async def update_progress(self, user_id: int, percent: float) -> EngagementMetrics:
        """Record the player's reported progress for a user's session."""
        async with self._lock:
            session = self._require(user_id)
            session.tracker.update_video_progress(percent)
            session.last_activity = self.clock.seconds()
            return session.tracker.get_current_metrics()

    async def tick_all(self) -> List[Tuple[WatchSession, EngagementMilestone]]:
        """Advance every session to the current time.

        A milestone stays due on every tick until ``settle_milestone``
        clears it, except while a retry is scheduled for later.

        Returns:
            Each milestone due for a claim, paired with its session
        """
        due = []
        async with self._lock:
            now = self.clock.seconds()
            for session in self._sessions.values():
                for milestone in session.tracker.advance():
                    session.milestones.append(milestone.watch_time_minutes)
                    session.last_activity = now
                    session.pending_milestone = milestone
                    session.retry_at = now
                if session.pending_milestone is not None and now >= session.retry_at:
                    due.append((session, session.pending_milestone))
        return due

    async def settle_milestone(
        self,
        session: WatchSession,
        watch_time_minutes: int,
        retry_after_ms: Optional[int] = None,
    ) -> None:
        """Resolve a claimed milestone.

        Args:
            session: Session the milestone belongs to
            watch_time_minutes: Mark that was claimed
            retry_after_ms: Keep the milestone pending and retry after this
                long; None clears it
        """
        async with self._lock:
            pending = session.pending_milestone
            if pending is None or pending.watch_time_minutes != watch_time_minutes:
                return
            if retry_after_ms:
                session.retry_at = self.clock.seconds() + retry_after_ms / 1000
            else:
                session.pending_milestone = None

    async def stop(self, user_id: int) -> Tuple[WatchSession, EngagementMetrics]:
        """Stop a user's session and return its final metrics.

        Raises:
            NoActiveSessionError: If the user is not watching anything
        """
        async with self._lock:
            session = self._require(user_id)
            session.tracker.advance()
            metrics = session.tracker.stop_tracking()
            del self._sessions[user_id]
            logger.debug(f"Stopped watch session for user {user_id} on {session.video_id}")
            return session, metrics

    async def stop_all(self) -> List[Tuple[WatchSession, EngagementMetrics]]:
        """Stop every session, e.g. on shutdown.

        Returns:
            The stopped sessions with their final metrics
        """
        async with self._lock:
            stopped = []
            for session in self._sessions.values():
                session.tracker.advance()
                stopped.append((session, session.tracker.stop_tracking()))
            self._sessions.clear()
            return stopped

    async def cleanup_expired(self) -> List[Tuple[WatchSession, EngagementMetrics]]:
        """Stop sessions idle longer than the timeout.

        Returns:
            The stopped sessions with their final metrics
        """
        async with self._lock:
            now = self.clock.seconds()
            expired_users = [
                user_id
                for user_id, session in self._sessions.items()
                if now - session.last_activity > self._timeout_seconds
            ]
            stopped = []
            for user_id in expired_users:
                session = self._sessions.pop(user_id)
                session.tracker.advance()
                stopped.append((session, session.tracker.stop_tracking()))

            if expired_users:
                logger.debug(f"Cleaned up {len(expired_users)} idle watch sessions")

            return stopped

    @property
    def count(self) -> int:
        """Return number of active sessions (not lock-protected, for debugging only)."""
        return len(self._sessions)

    def _require(self, user_id: int) -> WatchSession:
        session = self._sessions.get(user_id)
        if session is None:
            raise NoActiveSessionError(f"User {user_id} has no active watch session")
        return session
