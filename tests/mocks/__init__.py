"""Mock utilities for testing."""

from .clock_mocks import NEUTRAL_TIME, FrozenClock
from .discord_mocks import (
    MockBot,
    MockChannel,
    MockGuild,
    MockInteraction,
    MockMember,
    MockMessage,
    MockUser,
    create_mock_interaction,
)

__all__ = [
    "FrozenClock",
    "MockBot",
    "MockChannel",
    "MockGuild",
    "MockInteraction",
    "MockMember",
    "MockMessage",
    "MockUser",
    "NEUTRAL_TIME",
    "create_mock_interaction",
]
