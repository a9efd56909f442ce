"""Discord embed builders."""

from .progress import ProgressEmbedBuilder

__all__ = [
    "ProgressEmbedBuilder",
]
