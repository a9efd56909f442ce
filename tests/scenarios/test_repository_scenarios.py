"""Scenario-based tests for the SQLite repositories."""

import pytest

from reelup.gamification import ActionKind, QuizMetadata, UserAction


def _quiz(user_id, timestamp, score=90):
    return UserAction(
        user_id=str(user_id),
        action=ActionKind.QUIZ_COMPLETE,
        timestamp=timestamp,
        quiz_id="quiz-1",
        metadata=QuizMetadata(score=score, time_spent=120, questions_count=6),
    )


class TestUserRepositoryScenarios:
    """Test scenarios for users."""

    @pytest.mark.asyncio
    async def test_get_or_create_is_stable(self, user_repository):
        first = await user_repository.get_or_create("42", "learner")
        second = await user_repository.get_or_create("42", "renamed")

        assert first.id == second.id
        assert second.username == "renamed"
        assert (await user_repository.get_by_discord_id("42")).username == "renamed"

    @pytest.mark.asyncio
    async def test_save_progress(self, user_repository, test_user):
        test_user.total_xp = 420
        test_user.current_streak = 3
        test_user.best_streak = 5
        test_user.night_owl_sessions = 2
        test_user.last_activity_date = "2025-01-15"

        await user_repository.save_progress(test_user)
        stored = await user_repository.get_by_id(test_user.id)

        assert stored.total_xp == 420
        assert stored.current_streak == 3
        assert stored.best_streak == 5
        assert stored.night_owl_sessions == 2
        assert stored.last_activity_date == "2025-01-15"

    @pytest.mark.asyncio
    async def test_missing_user(self, user_repository):
        assert await user_repository.get_by_id(999) is None
        assert await user_repository.get_by_discord_id("nobody") is None


class TestActionRepositoryScenarios:
    """Test scenarios for the action log."""

    @pytest.mark.asyncio
    async def test_recent_actions_oldest_first(self, action_repository, test_user):
        await action_repository.append(test_user.id, _quiz(test_user.id, 3000))
        await action_repository.append(test_user.id, _quiz(test_user.id, 1000))
        await action_repository.append(test_user.id, _quiz(test_user.id, 2000, score=0))

        recent = await action_repository.get_recent(test_user.id, since_ms=1500)

        assert [a.timestamp for a in recent] == [2000, 3000]
        assert recent[0].metadata == QuizMetadata(score=0, time_spent=120, questions_count=6)
        assert recent[0].user_id == str(test_user.id)

    @pytest.mark.asyncio
    async def test_unknown_kinds_skipped(self, action_repository, test_database, test_user):
        await test_database.connection.execute(
            "INSERT INTO user_actions (user_id, action_type, timestamp_ms) VALUES (?, ?, ?)",
            (test_user.id, "legacy_kind", 5000),
        )
        await action_repository.append(test_user.id, _quiz(test_user.id, 6000))

        recent = await action_repository.get_recent(test_user.id, since_ms=0)

        assert [a.action for a in recent] == [ActionKind.QUIZ_COMPLETE]

    @pytest.mark.asyncio
    async def test_has_previous(self, action_repository, test_user):
        await action_repository.append(test_user.id, _quiz(test_user.id, 1000))

        assert await action_repository.has_previous(
            test_user.id, ActionKind.QUIZ_COMPLETE, quiz_id="quiz-1"
        )
        assert not await action_repository.has_previous(
            test_user.id, ActionKind.QUIZ_COMPLETE, quiz_id="quiz-2"
        )
        assert not await action_repository.has_previous(
            test_user.id, ActionKind.VIDEO_WATCH, video_id="quiz-1"
        )

    @pytest.mark.asyncio
    async def test_has_previous_rejects_unknown_column(self, action_repository, test_user):
        with pytest.raises(ValueError):
            await action_repository.has_previous(
                test_user.id, ActionKind.VIDEO_WATCH, username="x"
            )

    @pytest.mark.asyncio
    async def test_daily_counts_per_date(self, action_repository, test_user):
        for _ in range(3):
            await action_repository.increment_daily_count(test_user.id, "video_like", "2025-01-15")
        await action_repository.increment_daily_count(test_user.id, "video_like", "2025-01-16")

        assert await action_repository.get_daily_count(test_user.id, "video_like", "2025-01-15") == 3
        assert await action_repository.get_daily_count(test_user.id, "video_like", "2025-01-16") == 1
        assert await action_repository.get_daily_count(test_user.id, "notes_read", "2025-01-15") == 0

    @pytest.mark.asyncio
    async def test_count_by_source(self, action_repository, test_user):
        await action_repository.append(test_user.id, _quiz(test_user.id, 1000), source_address="10.0.0.1")
        await action_repository.append(test_user.id, _quiz(test_user.id, 2000), source_address="10.0.0.1")
        await action_repository.append(test_user.id, _quiz(test_user.id, 3000), source_address="10.0.0.2")

        assert await action_repository.count_by_source_since("10.0.0.1", 0) == 2
        assert await action_repository.count_by_source_since("10.0.0.1", 1500) == 1


class TestLikeRepositoryScenarios:
    """Test scenarios for the like relation."""

    @pytest.mark.asyncio
    async def test_one_like_per_video(self, like_repository, test_user):
        assert not await like_repository.has_liked(test_user.id, "video-1")

        assert await like_repository.add_like(test_user.id, "video-1") is True
        assert await like_repository.add_like(test_user.id, "video-1") is False
        assert await like_repository.has_liked(test_user.id, "video-1")


class TestWatchBonusRepositoryScenarios:
    """Test scenarios for paid watch bonuses."""

    @pytest.mark.asyncio
    async def test_last_rewarded_minutes(self, watch_bonus_repository, test_user):
        assert await watch_bonus_repository.get_last_rewarded_minutes(test_user.id, "video-1") is None

        await watch_bonus_repository.record(test_user.id, "video-1", 2, 30)
        await watch_bonus_repository.record(test_user.id, "video-1", 4, 35)
        await watch_bonus_repository.record(test_user.id, "video-2", 10, 50)

        assert await watch_bonus_repository.get_last_rewarded_minutes(test_user.id, "video-1") == 4


class TestAchievementRepositoryScenarios:
    """Test scenarios for the unlock cache."""

    @pytest.mark.asyncio
    async def test_unlock_recorded_once(self, achievement_repository, test_user):
        assert await achievement_repository.record_unlock(test_user.id, "first_steps") is True
        assert await achievement_repository.record_unlock(test_user.id, "first_steps") is False

        unlocked = await achievement_repository.get_unlocked(test_user.id)

        assert list(unlocked) == ["first_steps"]
        assert unlocked["first_steps"] is not None


class TestTransactionScenarios:
    """Test scenarios for grouping writes."""

    @pytest.mark.asyncio
    async def test_failure_rolls_back_every_write(self, test_database, like_repository, action_repository, test_user):
        with pytest.raises(RuntimeError):
            async with test_database.transaction():
                await like_repository.add_like(test_user.id, "video-1")
                await action_repository.increment_daily_count(test_user.id, "video_like", "2025-01-15")
                raise RuntimeError("write failed")

        assert not await like_repository.has_liked(test_user.id, "video-1")
        assert await action_repository.get_daily_count(test_user.id, "video_like", "2025-01-15") == 0

    @pytest.mark.asyncio
    async def test_nested_writes_commit_together(self, test_database, like_repository, action_repository, test_user):
        async with test_database.transaction():
            assert await like_repository.add_like(test_user.id, "video-1") is True
            assert await like_repository.add_like(test_user.id, "video-1") is False
            await action_repository.increment_daily_count(test_user.id, "video_like", "2025-01-15")

        assert await like_repository.has_liked(test_user.id, "video-1")
        assert await action_repository.get_daily_count(test_user.id, "video_like", "2025-01-15") == 1
