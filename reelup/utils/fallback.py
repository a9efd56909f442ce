"""Best-effort wrapper for reads against the backing store.

Reward checks favour availability: when the store cannot answer, the read
yields a caller-supplied default instead of blocking the user.
"""

import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def best_effort(
    read: Callable[[], Awaitable[T]],
    default: T,
    context: str = "",
) -> T:
    """Await a store read, returning ``default`` if it raises.

    Args:
        read: Zero-argument coroutine function performing the read
        default: Value returned when the read fails
        context: Short description used in the warning log

    Returns:
        The read's result, or ``default`` on failure
    """
    try:
        return await read()
    except Exception as e:
        logger.warning(f"Store read failed ({context or 'unknown'}), allowing: {e}")
        return default
