"""Per-network rate limiting for reported actions."""

import ipaddress
import logging
from typing import Optional, TYPE_CHECKING

from ..gamification.actions import ValidationResult
from ..utils.clock import SYSTEM_CLOCK, Clock
from ..utils.fallback import best_effort

if TYPE_CHECKING:
    from ..config import AntiCheatConfig
    from ..database.repositories import ActionRepository

logger = logging.getLogger(__name__)

REASON_NETWORK_LIMIT = "Too many actions from your network. Please try again later."
REASON_NETWORK_BURST = "Actions too frequent. Please slow down."


def normalize_address(address: Optional[str]) -> Optional[str]:
    """Return a canonical IP string, or None if the value is not an IP address."""
    if not address:
        return None
    try:
        return str(ipaddress.ip_address(address.strip()))
    except ValueError:
        return None


def is_local_address(address: str) -> bool:
    """Loopback sources are never rate limited."""
    if address == "localhost":
        return True
    try:
        return ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


class NetworkGuard:
    """Limits how many actions a single network address may report.

    Two windows are checked: a long window with a generous cap, and a
    short burst window. Both are read from the action log.
    """

    def __init__(
        self,
        action_repo: "ActionRepository",
        config: Optional["AntiCheatConfig"] = None,
        clock: Clock = None,
    ):
        self.action_repo = action_repo
        self.clock = clock or SYSTEM_CLOCK
        self.window_seconds = config.network_window_seconds if config else 300
        self.max_actions = config.network_max_actions if config else 100
        self.burst_seconds = config.network_burst_seconds if config else 10
        self.burst_max = config.network_burst_max if config else 20

    async def check(self, source_address: Optional[str]) -> ValidationResult:
        """Check whether a source address may report another action.

        Args:
            source_address: Reported network address; unknown or invalid values pass

        Returns:
            ValidationResult with cooldown_remaining set on rejection
        """
        address = normalize_address(source_address)
        if address is None or is_local_address(address):
            return ValidationResult.ok()

        now_ms = self.clock.now_ms()
        window_count = await best_effort(
            lambda: self.action_repo.count_by_source_since(
                address, now_ms - self.window_seconds * 1000
            ),
            default=0,
            context="network window",
        )
        if window_count >= self.max_actions:
            logger.info(f"Network limit hit for {address}: {window_count} actions")
            return ValidationResult.reject(
                REASON_NETWORK_LIMIT,
                cooldown_remaining=self.window_seconds * 1000,
            )

        burst_count = await best_effort(
            lambda: self.action_repo.count_by_source_since(
                address, now_ms - self.burst_seconds * 1000
            ),
            default=0,
            context="network burst",
        )
        if burst_count >= self.burst_max:
            logger.info(f"Network burst limit hit for {address}: {burst_count} actions")
            return ValidationResult.reject(
                REASON_NETWORK_BURST,
                cooldown_remaining=30000,
            )

        return ValidationResult.ok()
