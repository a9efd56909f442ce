"""Shared formatting utilities for Discord embeds."""

from ..constants import PROGRESS_BAR_LENGTH


def create_progress_bar(
    current: int,
    required: int,
    length: int = PROGRESS_BAR_LENGTH,
) -> str:
    """Create a visual progress bar showing current progress vs required.

    Args:
        current: Progress so far (will be capped at required)
        required: Total needed
        length: Number of bar cells

    Returns:
        ASCII progress bar string like "[████████░░░░░░░░░░░░] 8/20"
    """
    if required <= 0:
        return "[ No data yet ]"

    # Cap current at required
    capped = max(0, min(int(current), required))

    # Calculate filled length
    filled_len = int(capped / required * length)
    empty_len = length - filled_len

    bar = "[" + "█" * filled_len + "░" * empty_len + "]"
    return f"{bar} {capped:,}/{required:,}"


def format_duration(seconds: float) -> str:
    """Format a duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        String like "2h 05m", "12m 30s" or "45s"
    """
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to a maximum length with suffix.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to append when truncating (default: "...")

    Returns:
        Truncated text with suffix if needed, original text otherwise
    """
    if not text or len(text) <= max_length:
        return text or ""
    return text[: max_length - len(suffix)] + suffix
