"""Scenario-based tests for the /watch session manager."""

import pytest

from reelup.config import EngagementConfig
from reelup.services import WatchSessionManager
from reelup.utils.errors import NoActiveSessionError, SessionAlreadyActiveError

DISCORD_ID = 123456789
DB_ID = 1


class TestSessionLifecycleScenarios:
    """Test scenarios for starting and stopping sessions."""

    @pytest.mark.asyncio
    async def test_scenario_watch_and_stop(self, watch_sessions, frozen_clock):
        """
        Scenario: A learner watches a video for three minutes and stops

        Given: A started watch session
        When: Three minutes pass and the learner reports 80% progress
        Then: Stopping returns 180 seconds of watch time and the progress
        And: The session is gone
        """
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1", channel_id=42)
        frozen_clock.advance(minutes=3)
        await watch_sessions.update_progress(DISCORD_ID, 80)

        session, metrics = await watch_sessions.stop(DISCORD_ID)

        assert session.video_id == "video-1"
        assert session.channel_id == 42
        assert metrics.actual_watch_time == 180
        assert metrics.video_progress == 80
        assert await watch_sessions.get(DISCORD_ID) is None
        assert watch_sessions.count == 0

    @pytest.mark.asyncio
    async def test_start_replaces_previous_session(self, watch_sessions):
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-2")

        session = await watch_sessions.get(DISCORD_ID)
        assert session.video_id == "video-2"
        assert watch_sessions.count == 1

    @pytest.mark.asyncio
    async def test_start_without_replace_raises(self, watch_sessions):
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")

        with pytest.raises(SessionAlreadyActiveError):
            await watch_sessions.start(DISCORD_ID, DB_ID, "video-2", replace=False)

    @pytest.mark.asyncio
    async def test_commands_without_session_raise(self, watch_sessions):
        with pytest.raises(NoActiveSessionError):
            await watch_sessions.stop(DISCORD_ID)
        with pytest.raises(NoActiveSessionError):
            await watch_sessions.set_playing(DISCORD_ID, False)
        with pytest.raises(NoActiveSessionError):
            await watch_sessions.update_progress(DISCORD_ID, 50)

    @pytest.mark.asyncio
    async def test_sessions_are_per_user(self, watch_sessions, frozen_clock):
        await watch_sessions.start(1, 1, "video-1")
        frozen_clock.advance(seconds=30)
        await watch_sessions.start(2, 2, "video-2")
        frozen_clock.advance(seconds=30)

        _, first = await watch_sessions.stop(1)
        _, second = await watch_sessions.stop(2)

        assert first.actual_watch_time == 60
        assert second.actual_watch_time == 30


class TestPlaybackScenarios:
    """Test scenarios for pausing and leaving the video."""

    @pytest.mark.asyncio
    async def test_scenario_pause_and_resume(self, watch_sessions, frozen_clock):
        """
        Scenario: A learner pauses halfway

        Given: A session that played for 30 seconds
        When: It is paused for 60 seconds, then resumed for 30
        Then: Only the 60 seconds of playback count
        """
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        frozen_clock.advance(seconds=30)
        paused = await watch_sessions.set_playing(DISCORD_ID, False)
        frozen_clock.advance(seconds=60)
        await watch_sessions.set_playing(DISCORD_ID, True)
        frozen_clock.advance(seconds=30)

        _, metrics = await watch_sessions.stop(DISCORD_ID)

        assert paused.actual_watch_time == 30
        assert metrics.actual_watch_time == 60

    @pytest.mark.asyncio
    async def test_leaving_the_video(self, watch_sessions, frozen_clock):
        """Time away is not counted and costs engagement."""
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        frozen_clock.advance(seconds=10)
        await watch_sessions.set_visibility(DISCORD_ID, False)
        frozen_clock.advance(seconds=60)
        back = await watch_sessions.set_visibility(DISCORD_ID, True)

        assert back.actual_watch_time == 10
        assert back.tab_switches == 1
        assert back.engagement_score == 80


class TestBackgroundScenarios:
    """Test scenarios driven by the background loop."""

    @pytest.mark.asyncio
    async def test_scenario_milestone_from_tick(self, watch_sessions, frozen_clock):
        """
        Scenario: The loop ticks a session past two minutes

        Given: A session playing for 2 minutes
        When: All sessions are ticked
        Then: One 2-minute milestone is reported for that session
        And: It stays due until it is settled
        """
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        frozen_clock.advance(minutes=2)

        reached = await watch_sessions.tick_all()

        assert len(reached) == 1
        session, milestone = reached[0]
        assert session.user_id == DISCORD_ID
        assert milestone.watch_time_minutes == 2
        assert session.milestones == [2]
        assert await watch_sessions.tick_all() == [(session, milestone)]

        await watch_sessions.settle_milestone(session, 2)
        assert await watch_sessions.tick_all() == []

    @pytest.mark.asyncio
    async def test_retry_waits_for_cooldown(self, watch_sessions, frozen_clock):
        """A milestone rejected by a cooldown comes back once it has passed."""
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        frozen_clock.advance(minutes=2)
        [(session, _)] = await watch_sessions.tick_all()

        await watch_sessions.settle_milestone(session, 2, retry_after_ms=800)

        assert await watch_sessions.tick_all() == []
        frozen_clock.advance(seconds=1)
        [(_, milestone)] = await watch_sessions.tick_all()
        assert milestone.watch_time_minutes == 2

    @pytest.mark.asyncio
    async def test_higher_mark_replaces_pending(self, watch_sessions, frozen_clock):
        await watch_sessions.start(DISCORD_ID, DB_ID, "video-1")
        frozen_clock.advance(minutes=2)
        [(session, _)] = await watch_sessions.tick_all()
        await watch_sessions.settle_milestone(session, 2, retry_after_ms=600000)

        frozen_clock.advance(minutes=2)
        [(_, milestone)] = await watch_sessions.tick_all()

        assert milestone.watch_time_minutes == 4
        # Settling the replaced mark has no effect
        await watch_sessions.settle_milestone(session, 2)
        assert session.pending_milestone.watch_time_minutes == 4

    @pytest.mark.asyncio
    async def test_idle_sessions_expire(self, frozen_clock):
        manager = WatchSessionManager(EngagementConfig(session_timeout_minutes=10), clock=frozen_clock)
        await manager.start(1, 1, "video-1")
        frozen_clock.advance(minutes=8)
        await manager.start(2, 2, "video-2")
        frozen_clock.advance(minutes=3)

        expired = await manager.cleanup_expired()

        assert [session.user_id for session, _ in expired] == [1]
        assert expired[0][1].actual_watch_time == 11 * 60
        assert await manager.get(2) is not None

    @pytest.mark.asyncio
    async def test_stop_all(self, watch_sessions):
        await watch_sessions.start(1, 1, "video-1")
        await watch_sessions.start(2, 2, "video-2")

        stopped = await watch_sessions.stop_all()

        assert sorted(session.user_id for session, _ in stopped) == [1, 2]
        assert watch_sessions.count == 0
