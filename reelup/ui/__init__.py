"""UI utilities for Discord embeds and formatting."""

from .formatters import (
    create_progress_bar,
    format_duration,
    truncate_text,
)
from .embeds import ProgressEmbedBuilder

__all__ = [
    "create_progress_bar",
    "format_duration",
    "truncate_text",
    "ProgressEmbedBuilder",
]
