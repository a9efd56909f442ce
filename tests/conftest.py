"""Pytest configuration and shared fixtures for reelup tests."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.mocks.clock_mocks import FrozenClock
from tests.mocks.discord_mocks import (
    MockBot,
    MockChannel,
    MockGuild,
    MockInteraction,
    MockUser,
)


# ============================================================================
# Clock Fixtures
# ============================================================================


@pytest.fixture
def frozen_clock():
    """A clock fixed at a Wednesday noon, moved only by the test."""
    return FrozenClock()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def test_database():
    """Create an in-memory database for testing."""
    from reelup.database.connection import Database

    # Use in-memory SQLite
    db = Database(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def user_repository(test_database):
    """Create a user repository with the test database."""
    from reelup.database.repositories import UserRepository

    return UserRepository(test_database)


@pytest_asyncio.fixture
async def action_repository(test_database):
    """Create an action repository with the test database."""
    from reelup.database.repositories import ActionRepository

    return ActionRepository(test_database)


@pytest_asyncio.fixture
async def like_repository(test_database):
    """Create a like repository with the test database."""
    from reelup.database.repositories import LikeRepository

    return LikeRepository(test_database)


@pytest_asyncio.fixture
async def watch_bonus_repository(test_database):
    """Create a watch bonus repository with the test database."""
    from reelup.database.repositories import WatchBonusRepository

    return WatchBonusRepository(test_database)


@pytest_asyncio.fixture
async def achievement_repository(test_database):
    """Create an achievement repository with the test database."""
    from reelup.database.repositories import AchievementRepository

    return AchievementRepository(test_database)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def xp_calculator(frozen_clock):
    """Create an XP calculator reading the frozen clock."""
    from reelup.gamification import XPCalculator

    return XPCalculator(clock=frozen_clock)


@pytest.fixture
def achievement_engine():
    """Create an achievement engine with the full catalogue."""
    from reelup.gamification import AchievementEngine

    return AchievementEngine()


@pytest_asyncio.fixture
async def action_validator(like_repository, action_repository, watch_bonus_repository, frozen_clock):
    """Create a validator backed by the test database."""
    from reelup.services import ActionValidator, RepositoryValidationStore

    store = RepositoryValidationStore(
        like_repo=like_repository,
        action_repo=action_repository,
        watch_bonus_repo=watch_bonus_repository,
    )
    return ActionValidator(store=store, clock=frozen_clock)


@pytest_asyncio.fixture
async def network_guard(action_repository, frozen_clock):
    """Create a network guard with default limits."""
    from reelup.services import NetworkGuard

    return NetworkGuard(action_repository, clock=frozen_clock)


@pytest_asyncio.fixture
async def progress_service(
    user_repository,
    action_repository,
    like_repository,
    watch_bonus_repository,
    achievement_repository,
    action_validator,
    network_guard,
    xp_calculator,
    achievement_engine,
    frozen_clock,
):
    """Create a progress service wired to the test database."""
    from reelup.services import ProgressService

    return ProgressService(
        user_repo=user_repository,
        action_repo=action_repository,
        like_repo=like_repository,
        watch_bonus_repo=watch_bonus_repository,
        achievement_repo=achievement_repository,
        validator=action_validator,
        network_guard=network_guard,
        xp_calculator=xp_calculator,
        achievement_engine=achievement_engine,
        clock=frozen_clock,
    )


@pytest.fixture
def watch_sessions(frozen_clock):
    """Create a watch session manager reading the frozen clock."""
    from reelup.services import WatchSessionManager

    return WatchSessionManager(clock=frozen_clock)


# ============================================================================
# Discord Fixtures
# ============================================================================


@pytest.fixture
def mock_user():
    """Create a mock Discord user."""
    return MockUser(id=123456789, name="TestLearner", display_name="TestLearner")


@pytest.fixture
def mock_channel():
    """Create a mock Discord channel."""
    return MockChannel(id=987654321, name="test-channel")


@pytest.fixture
def mock_guild(mock_channel):
    """Create a mock Discord guild."""
    return MockGuild(id=111222333, name="Test Server", channels=[mock_channel])


@pytest.fixture
def mock_interaction(mock_user, mock_channel, mock_guild):
    """Create a mock Discord interaction."""
    mock_channel.guild = mock_guild
    return MockInteraction(
        user=mock_user,
        channel=mock_channel,
        guild=mock_guild,
    )


# ============================================================================
# Integration Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def configured_bot(
    test_database,
    user_repository,
    action_repository,
    like_repository,
    watch_bonus_repository,
    achievement_repository,
    action_validator,
    progress_service,
    watch_sessions,
    mock_channel,
    frozen_clock,
):
    """Create a fully configured bot-like context for integration tests.

    This doesn't create a real bot, but provides all the services
    and repositories that would be attached to a real bot.
    """
    from reelup.config import (
        AntiCheatConfig,
        Config,
        DatabaseConfig,
        DiscordConfig,
        EngagementConfig,
    )

    # Return a context object with all services
    class BotContext(MockBot):
        pass

    ctx = BotContext()
    ctx.config = Config(
        discord=DiscordConfig(sync_commands_on_startup=False),
        database=DatabaseConfig(path=":memory:"),
        anti_cheat=AntiCheatConfig(),
        engagement=EngagementConfig(),
    )
    ctx.clock = frozen_clock
    ctx.database = test_database
    ctx.user_repo = user_repository
    ctx.action_repo = action_repository
    ctx.like_repo = like_repository
    ctx.watch_bonus_repo = watch_bonus_repository
    ctx.achievement_repo = achievement_repository
    ctx.validator = action_validator
    ctx.progress_service = progress_service
    ctx.watch_sessions = watch_sessions
    ctx.channels[mock_channel.id] = mock_channel

    return ctx


# ============================================================================
# Test Data Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def test_user(user_repository, mock_user):
    """Create a test user in the database."""
    user = await user_repository.get_or_create(
        discord_id=str(mock_user.id),
        username=mock_user.name,
    )
    return user


# ============================================================================
# Utility Fixtures
# ============================================================================


@pytest.fixture
def assert_embed_contains():
    """Fixture that returns an assertion helper for embed content."""

    def _assert_embed_contains(embed, expected_text: str, field_name: str = None):
        """Assert that an embed contains expected text."""
        if field_name:
            for field in getattr(embed, "fields", []):
                if field.name == field_name:
                    assert expected_text in str(field.value), \
                        f"Expected '{expected_text}' in field '{field_name}'"
                    return
            pytest.fail(f"Field '{field_name}' not found in embed")
        else:
            # Check title, description, and all fields
            embed_text = str(getattr(embed, "title", "")) + \
                        str(getattr(embed, "description", ""))
            for field in getattr(embed, "fields", []):
                embed_text += str(field.name) + str(field.value)

            assert expected_text in embed_text, \
                f"Expected '{expected_text}' in embed content"

    return _assert_embed_contains
