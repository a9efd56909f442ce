"""Engagement tracking for a single video-watch session."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..utils.clock import SYSTEM_CLOCK, Clock
from ..utils.errors import TrackingNotStartedError

logger = logging.getLogger(__name__)

MAX_SCORE = 100.0
MIN_SCORE = 0.0


@dataclass(frozen=True)
class EngagementMetrics:
    """Snapshot of a viewing session."""

    actual_watch_time: float = 0.0  # seconds
    video_progress: float = 0.0  # percent 0-100, as reported by the player
    engagement_score: float = MAX_SCORE  # 0-100
    tab_switches: int = 0

    @property
    def watch_time_minutes(self) -> int:
        """Whole minutes of actual watch time."""
        return int(self.actual_watch_time // 60)


@dataclass(frozen=True)
class EngagementMilestone:
    """Reported each time a new block of attentive watch time completes."""

    watch_time_minutes: int
    metrics: EngagementMetrics


@dataclass
class EngagementConfig:
    """Tuning for engagement scoring."""

    tick_seconds: float = 1.0
    recovery_per_tick: float = 0.5
    away_threshold_seconds: float = 5.0
    max_away_penalty: float = 20.0
    milestone_minutes: int = 2
    milestone_min_score: float = 70.0


class EngagementTracker:
    """Estimates how attentively one session of a video was watched.

    The tracker is driven by three inputs: fixed ticks while the video
    plays, visibility transitions, and the player's reported progress.
    Watch time only accrues on ticks where the view is visible and
    playing; time spent away costs score, attentive ticks recover it.
    """

    def __init__(
        self,
        clock: Clock = None,
        config: EngagementConfig = None,
        on_milestone: Optional[Callable[[EngagementMilestone], None]] = None,
    ):
        self.clock = clock or SYSTEM_CLOCK
        self.config = config or EngagementConfig()
        self.on_milestone = on_milestone

        self.session_start: Optional[float] = None
        self.last_active_time: Optional[float] = None
        self.is_visible = True
        self.is_playing = False

        self._actual_watch_time = 0.0
        self._video_progress = 0.0
        self._engagement_score = MAX_SCORE
        self._tab_switches = 0
        self._last_sample: Optional[float] = None
        self._last_milestone = 0
        self._final: Optional[EngagementMetrics] = None

    @property
    def is_tracking(self) -> bool:
        """True between start_tracking() and stop_tracking()."""
        return self.session_start is not None and self._final is None

    def start_tracking(self) -> None:
        """Begin a session, resetting all counters."""
        now = self.clock.seconds()
        self.session_start = now
        self.last_active_time = now
        self.is_visible = True
        self.is_playing = False
        self._actual_watch_time = 0.0
        self._video_progress = 0.0
        self._engagement_score = MAX_SCORE
        self._tab_switches = 0
        self._last_sample = now
        self._last_milestone = 0
        self._final = None

    def get_current_metrics(self) -> EngagementMetrics:
        """Return the accumulated metrics without changing anything."""
        if self._final is not None:
            return self._final
        return EngagementMetrics(
            actual_watch_time=self._actual_watch_time,
            video_progress=self._video_progress,
            engagement_score=self._engagement_score,
            tab_switches=self._tab_switches,
        )

    def stop_tracking(self) -> EngagementMetrics:
        """Finish the session and return its final snapshot.

        Further calls return the same snapshot.
        """
        if self._final is None:
            self._final = self.get_current_metrics()
            logger.debug(
                f"Tracking stopped: {self._final.actual_watch_time:.0f}s watched, "
                f"score {self._final.engagement_score:.1f}, {self._final.tab_switches} tab switches"
            )
        return self._final

    # ==================== Inputs ====================

    def set_playing(self, playing: bool) -> None:
        """Record the player's play/pause state."""
        self.is_playing = playing

    def update_video_progress(self, percent: float) -> None:
        """Echo the player's reported progress into the metrics."""
        if self._final is not None:
            return
        self._video_progress = max(0.0, min(100.0, float(percent)))

    def set_visibility(self, visible: bool) -> None:
        """Handle a visibility transition of the viewing surface."""
        self._require_started()
        if self._final is not None or visible == self.is_visible:
            return

        now = self.clock.seconds()
        self.is_visible = visible

        if not visible:
            self._tab_switches += 1
            self.last_active_time = now
            return

        away_time = now - (self.last_active_time or now)
        if away_time > self.config.away_threshold_seconds:
            penalty = min(self.config.max_away_penalty, away_time / 2)
            self._engagement_score = max(MIN_SCORE, self._engagement_score - penalty)

    def tick(self, playing: Optional[bool] = None) -> Optional[EngagementMilestone]:
        """Apply one fixed sampling tick.

        Args:
            playing: Updated play state, if the caller knows it

        Returns:
            A milestone if this tick completed a new block of watch time
        """
        self._require_started()
        if self._final is not None:
            return None
        if playing is not None:
            self.is_playing = playing

        self._last_sample = (self._last_sample or self.clock.seconds()) + self.config.tick_seconds

        if not (self.is_visible and self.is_playing):
            return None

        self._actual_watch_time += self.config.tick_seconds
        self._engagement_score = min(
            MAX_SCORE, self._engagement_score + self.config.recovery_per_tick
        )
        return self._check_milestone()

    def advance(self) -> List[EngagementMilestone]:
        """Apply every whole tick elapsed on the clock since the last sample."""
        self._require_started()
        if self._final is not None:
            return []

        elapsed = self.clock.seconds() - self._last_sample
        ticks = int(elapsed // self.config.tick_seconds)
        milestones = []
        for _ in range(max(0, ticks)):
            milestone = self.tick()
            if milestone is not None:
                milestones.append(milestone)
        return milestones

    def _check_milestone(self) -> Optional[EngagementMilestone]:
        block = self.config.milestone_minutes
        if block <= 0:
            return None

        minutes = int(self._actual_watch_time // 60)
        mark = minutes - minutes % block
        if mark < block or mark <= self._last_milestone:
            return None
        if self._engagement_score < self.config.milestone_min_score:
            return None

        self._last_milestone = mark
        milestone = EngagementMilestone(
            watch_time_minutes=mark,
            metrics=self.get_current_metrics(),
        )
        if self.on_milestone is not None:
            self.on_milestone(milestone)
        return milestone

    def _require_started(self) -> None:
        if self.session_start is None:
            raise TrackingNotStartedError("start_tracking() must be called first")
