"""Configuration loader for reelup."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml
from dotenv import load_dotenv


@dataclass
class DiscordConfig:
    """Discord bot configuration."""

    sync_commands_on_startup: bool = True


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: str = "data/reelup.db"


@dataclass
class AntiCheatConfig:
    """Anti-cheat limits.

    Per-kind maps only need the kinds being overridden; anything missing
    falls back to the validator's built-in table.
    """

    cooldowns_ms: Dict[str, int] = field(default_factory=dict)
    hourly_limits: Dict[str, int] = field(default_factory=dict)
    daily_limits: Dict[str, int] = field(default_factory=dict)
    # How much action history is read for each validation
    history_window_hours: int = 2
    # Per-network limits (applied only when a source address is known)
    network_window_seconds: int = 300
    network_max_actions: int = 100
    network_burst_seconds: int = 10
    network_burst_max: int = 20


@dataclass
class EngagementConfig:
    """Engagement tracking configuration."""

    tick_seconds: float = 1.0
    recovery_per_tick: float = 0.5
    away_threshold_seconds: float = 5.0
    max_away_penalty: float = 20.0
    milestone_minutes: int = 2
    milestone_min_score: float = 70.0
    session_timeout_minutes: int = 180


@dataclass
class Config:
    """Main configuration container."""

    discord: DiscordConfig
    database: DatabaseConfig
    anti_cheat: AntiCheatConfig
    engagement: EngagementConfig

    # Environment variables (loaded separately)
    discord_token: str = ""


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file and environment variables."""
    # Load environment variables
    load_dotenv()

    # Read YAML config
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        data = yaml.safe_load(f) or {}

    discord_data = data.get("discord", {})
    database_data = data.get("database", {})
    anti_cheat_data = data.get("anti_cheat", {})
    engagement_data = data.get("engagement", {})

    config = Config(
        discord=DiscordConfig(
            sync_commands_on_startup=discord_data.get("sync_commands_on_startup", True),
        ),
        database=DatabaseConfig(
            path=database_data.get("path", "data/reelup.db"),
        ),
        anti_cheat=AntiCheatConfig(
            cooldowns_ms=dict(anti_cheat_data.get("cooldowns_ms") or {}),
            hourly_limits=dict(anti_cheat_data.get("hourly_limits") or {}),
            daily_limits=dict(anti_cheat_data.get("daily_limits") or {}),
            history_window_hours=anti_cheat_data.get("history_window_hours", 2),
            network_window_seconds=anti_cheat_data.get("network_window_seconds", 300),
            network_max_actions=anti_cheat_data.get("network_max_actions", 100),
            network_burst_seconds=anti_cheat_data.get("network_burst_seconds", 10),
            network_burst_max=anti_cheat_data.get("network_burst_max", 20),
        ),
        engagement=EngagementConfig(
            tick_seconds=engagement_data.get("tick_seconds", 1.0),
            recovery_per_tick=engagement_data.get("recovery_per_tick", 0.5),
            away_threshold_seconds=engagement_data.get("away_threshold_seconds", 5.0),
            max_away_penalty=engagement_data.get("max_away_penalty", 20.0),
            milestone_minutes=engagement_data.get("milestone_minutes", 2),
            milestone_min_score=engagement_data.get("milestone_min_score", 70.0),
            session_timeout_minutes=engagement_data.get("session_timeout_minutes", 180),
        ),
        discord_token=os.getenv("DISCORD_TOKEN", ""),
    )

    return config
