"""Mock Discord objects for testing bot interactions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock


@dataclass
class MockUser:
    """Mock Discord user object."""

    id: int = 123456789
    name: str = "TestUser"
    display_name: str = "TestUser"
    discriminator: str = "0001"
    bot: bool = False
    mention: str = field(init=False)

    def __post_init__(self):
        self.mention = f"<@{self.id}>"

    def __eq__(self, other):
        if isinstance(other, MockUser):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)


@dataclass
class MockMember(MockUser):
    """Mock Discord guild member object."""

    guild: Optional["MockGuild"] = None
    roles: List[Any] = field(default_factory=list)
    nick: Optional[str] = None


@dataclass
class MockChannel:
    """Mock Discord channel object."""

    id: int = 987654321
    name: str = "test-channel"
    type: str = "text"
    guild: Optional["MockGuild"] = None

    # Async methods
    send: AsyncMock = field(default_factory=AsyncMock)

    def __post_init__(self):
        self.send = AsyncMock(return_value=MockMessage(channel_id=self.id))


@dataclass
class MockGuild:
    """Mock Discord guild (server) object."""

    id: int = 111222333
    name: str = "Test Server"
    owner_id: int = 123456789
    members: List[MockMember] = field(default_factory=list)
    channels: List[MockChannel] = field(default_factory=list)

    def get_member(self, user_id: int) -> Optional[MockMember]:
        """Get member by ID."""
        for member in self.members:
            if member.id == user_id:
                return member
        return None


@dataclass
class MockMessage:
    """Mock Discord message object."""

    id: int = 555666777
    content: str = ""
    channel_id: int = 987654321
    created_at: datetime = field(default_factory=datetime.now)


class MockInteractionResponse:
    """Mock Discord interaction response."""

    def __init__(self):
        self._is_done = False
        self.send_message = AsyncMock(side_effect=self._mark_done)
        self.defer = AsyncMock(side_effect=self._mark_done)

    def is_done(self) -> bool:
        return self._is_done

    async def _mark_done(self, *args, **kwargs):
        self._is_done = True


class MockFollowup:
    """Mock Discord interaction followup."""

    def __init__(self):
        self.send = AsyncMock()


@dataclass
class MockInteraction:
    """Mock Discord interaction object for slash commands."""

    id: int = 999888777
    user: MockUser = field(default_factory=MockUser)
    channel: MockChannel = field(default_factory=MockChannel)
    guild: Optional[MockGuild] = None
    data: Dict[str, Any] = field(default_factory=dict)

    response: MockInteractionResponse = field(default_factory=MockInteractionResponse)
    followup: MockFollowup = field(default_factory=MockFollowup)

    # Track sent content and embeds for assertions
    sent_messages: List[Dict[str, Any]] = field(default_factory=list)
    sent_embeds: List[Any] = field(default_factory=list)

    def __post_init__(self):
        self.response = MockInteractionResponse()
        self.followup = MockFollowup()

        # Capture everything sent as a followup
        original_followup_send = self.followup.send

        async def capture_followup_send(content=None, embed=None, **kwargs):
            self.sent_messages.append({"content": content, "embed": embed, **kwargs})
            if embed:
                self.sent_embeds.append(embed)
            return await original_followup_send(content=content, embed=embed, **kwargs)

        self.followup.send = AsyncMock(side_effect=capture_followup_send)

    @property
    def channel_id(self) -> Optional[int]:
        return self.channel.id if self.channel else None

    @property
    def last_content(self) -> Optional[str]:
        """Content of the most recent followup, if any."""
        return self.sent_messages[-1]["content"] if self.sent_messages else None


class MockBot:
    """Mock Discord bot for testing."""

    def __init__(self, user_id: int = 999999999):
        self.user = MockUser(id=user_id, name="ReelupBot", bot=True)
        self.guilds: List[MockGuild] = []
        self.channels: Dict[int, MockChannel] = {}
        self.command_prefix = "!"

        # Async methods
        self.change_presence = AsyncMock()
        self.close = AsyncMock()
        self.add_cog = AsyncMock()
        self.load_extension = AsyncMock()

        # Command tree
        self.tree = MagicMock()
        self.tree.sync = AsyncMock()

    def get_channel(self, channel_id: int) -> Optional[MockChannel]:
        return self.channels.get(channel_id)


def create_mock_interaction(
    user_id: int = 123456789,
    user_name: str = "TestUser",
    channel_id: int = 987654321,
    channel_name: str = "test-channel",
    guild_id: Optional[int] = 111222333,
    guild_name: str = "Test Server",
) -> MockInteraction:
    """Factory function to create a configured mock interaction."""

    user = MockUser(id=user_id, name=user_name, display_name=user_name)
    channel = MockChannel(id=channel_id, name=channel_name)

    guild = None
    if guild_id:
        guild = MockGuild(id=guild_id, name=guild_name)
        channel.guild = guild

    return MockInteraction(
        user=user,
        channel=channel,
        guild=guild,
    )
