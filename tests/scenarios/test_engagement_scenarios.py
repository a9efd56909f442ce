"""Scenario-based tests for engagement tracking of a single viewing session."""

import pytest

from reelup.gamification import EngagementConfig, EngagementTracker
from reelup.utils.errors import TrackingNotStartedError


@pytest.fixture
def tracker(frozen_clock):
    """A started tracker on the frozen clock."""
    tracker = EngagementTracker(clock=frozen_clock)
    tracker.start_tracking()
    return tracker


def _step_away(tracker, clock, seconds):
    """Hide the video for a while, then come back."""
    tracker.advance()
    tracker.set_visibility(False)
    clock.advance(seconds=seconds)
    tracker.advance()
    tracker.set_visibility(True)


class TestWatchTimeScenarios:
    """Test scenarios for accruing actual watch time."""

    def test_scenario_attentive_viewing(self, tracker, frozen_clock):
        """
        Scenario: A learner watches with the video visible and playing

        Given: A started session that is playing
        When: 90 seconds pass
        Then: 90 seconds of watch time are recorded at full score
        """
        tracker.set_playing(True)
        frozen_clock.advance(seconds=90)
        tracker.advance()

        metrics = tracker.get_current_metrics()
        assert metrics.actual_watch_time == 90
        assert metrics.engagement_score == 100
        assert metrics.watch_time_minutes == 1

    def test_paused_time_not_counted(self, tracker, frozen_clock):
        """Ticks while paused add nothing."""
        frozen_clock.advance(seconds=60)
        tracker.advance()

        assert tracker.get_current_metrics().actual_watch_time == 0

    def test_hidden_time_not_counted(self, tracker, frozen_clock):
        """Ticks while the video is hidden add nothing."""
        tracker.set_playing(True)
        _step_away(tracker, frozen_clock, 30)

        metrics = tracker.get_current_metrics()
        assert metrics.actual_watch_time == 0
        assert metrics.tab_switches == 1

    def test_tick_with_explicit_play_state(self, tracker):
        """A tick can carry the latest play state."""
        tracker.tick(playing=True)
        tracker.tick()
        tracker.tick(playing=False)

        assert tracker.get_current_metrics().actual_watch_time == 2

    def test_progress_echoes_player_and_clamps(self, tracker):
        """Reported progress is stored as-is within 0..100."""
        tracker.update_video_progress(42.5)
        assert tracker.get_current_metrics().video_progress == 42.5

        tracker.update_video_progress(150)
        assert tracker.get_current_metrics().video_progress == 100

        tracker.update_video_progress(-3)
        assert tracker.get_current_metrics().video_progress == 0

    def test_metrics_read_has_no_side_effects(self, tracker, frozen_clock):
        """Reading metrics twice gives the same snapshot."""
        tracker.set_playing(True)
        frozen_clock.advance(seconds=10)

        assert tracker.get_current_metrics() == tracker.get_current_metrics()
        assert tracker.get_current_metrics().actual_watch_time == 0


class TestEngagementScoreScenarios:
    """Test scenarios for the engagement score."""

    def test_scenario_learner_checks_another_tab(self, tracker, frozen_clock):
        """
        Scenario: A learner leaves the video for 30 seconds

        Given: A session at full score
        When: The video is hidden for 30 seconds
        Then: The score drops by half the time away (15)
        """
        _step_away(tracker, frozen_clock, 30)

        assert tracker.get_current_metrics().engagement_score == 85

    def test_short_absence_is_free(self, tracker, frozen_clock):
        """Absences up to the threshold cost nothing."""
        _step_away(tracker, frozen_clock, 5)

        metrics = tracker.get_current_metrics()
        assert metrics.engagement_score == 100
        assert metrics.tab_switches == 1

    def test_penalty_is_capped(self, tracker, frozen_clock):
        """A long absence costs at most the maximum penalty."""
        _step_away(tracker, frozen_clock, 600)

        assert tracker.get_current_metrics().engagement_score == 80

    def test_score_recovers_while_attentive(self, tracker, frozen_clock):
        """Attentive ticks recover half a point each."""
        _step_away(tracker, frozen_clock, 600)
        tracker.set_playing(True)
        frozen_clock.advance(seconds=10)
        tracker.advance()

        assert tracker.get_current_metrics().engagement_score == 85

    def test_score_never_below_zero(self, tracker, frozen_clock):
        """Repeated long absences floor the score at 0."""
        for _ in range(10):
            _step_away(tracker, frozen_clock, 100)

        metrics = tracker.get_current_metrics()
        assert metrics.engagement_score == 0
        assert metrics.tab_switches == 10

    def test_score_never_above_hundred(self, tracker, frozen_clock):
        """Recovery is capped at 100."""
        tracker.set_playing(True)
        frozen_clock.advance(seconds=600)
        tracker.advance()

        assert tracker.get_current_metrics().engagement_score == 100

    def test_repeated_hide_events_count_once(self, tracker):
        """Hiding an already hidden video is not another switch."""
        tracker.set_visibility(False)
        tracker.set_visibility(False)

        assert tracker.get_current_metrics().tab_switches == 1


class TestMilestoneScenarios:
    """Test scenarios for continuous-watching milestones."""

    def test_scenario_two_minutes_of_focus(self, tracker, frozen_clock):
        """
        Scenario: A learner watches attentively for two minutes

        Given: A playing session
        When: 120 seconds pass
        Then: A 2-minute milestone is reported exactly once
        """
        tracker.set_playing(True)
        frozen_clock.advance(seconds=120)
        milestones = tracker.advance()

        assert [m.watch_time_minutes for m in milestones] == [2]

        frozen_clock.advance(seconds=60)
        assert tracker.advance() == []

    def test_milestones_every_block(self, tracker, frozen_clock):
        """Each new 2-minute block is its own milestone."""
        tracker.set_playing(True)
        frozen_clock.advance(seconds=6 * 60)

        milestones = tracker.advance()

        assert [m.watch_time_minutes for m in milestones] == [2, 4, 6]

    def test_milestone_waits_for_focus(self, tracker, frozen_clock):
        """A distracted learner reaches the milestone once the score recovers."""
        for _ in range(5):
            _step_away(tracker, frozen_clock, 100)
        assert tracker.get_current_metrics().engagement_score == 0

        tracker.set_playing(True)
        frozen_clock.advance(seconds=120)
        assert tracker.advance() == []

        frozen_clock.advance(seconds=20)
        milestones = tracker.advance()
        assert [m.watch_time_minutes for m in milestones] == [2]
        assert milestones[0].metrics.engagement_score == 70

    def test_milestone_callback(self, frozen_clock):
        """A registered listener receives each milestone."""
        received = []
        tracker = EngagementTracker(
            clock=frozen_clock,
            config=EngagementConfig(milestone_minutes=1),
            on_milestone=received.append,
        )
        tracker.start_tracking()
        tracker.set_playing(True)

        frozen_clock.advance(seconds=125)
        tracker.advance()

        assert [m.watch_time_minutes for m in received] == [1, 2]


class TestLifecycleScenarios:
    """Test scenarios for starting and stopping a tracker."""

    def test_driving_before_start_raises(self, frozen_clock):
        """Ticks and visibility changes need a started session."""
        tracker = EngagementTracker(clock=frozen_clock)

        with pytest.raises(TrackingNotStartedError):
            tracker.tick()
        with pytest.raises(TrackingNotStartedError):
            tracker.set_visibility(False)
        with pytest.raises(TrackingNotStartedError):
            tracker.advance()

    def test_stop_is_idempotent(self, tracker, frozen_clock):
        """Stopping twice returns the same frozen snapshot."""
        tracker.set_playing(True)
        frozen_clock.advance(seconds=30)
        tracker.advance()

        first = tracker.stop_tracking()
        frozen_clock.advance(seconds=30)
        assert tracker.advance() == []
        assert tracker.tick() is None
        second = tracker.stop_tracking()

        assert first is second
        assert second.actual_watch_time == 30
        assert not tracker.is_tracking

    def test_restart_resets_counters(self, tracker, frozen_clock):
        """Starting again begins a fresh session."""
        tracker.set_playing(True)
        frozen_clock.advance(seconds=30)
        tracker.advance()
        tracker.stop_tracking()

        tracker.start_tracking()

        assert tracker.is_tracking
        assert tracker.get_current_metrics().actual_watch_time == 0
