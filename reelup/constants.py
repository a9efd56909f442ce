"""Constants for reelup bot."""

# Discord platform limits
DISCORD_EMBED_FIELD_LIMIT = 1024
DISCORD_EMBED_MAX_FIELDS = 25

# Display settings
PROGRESS_BAR_LENGTH = 20

# Background loop intervals (seconds)
WATCH_TICK_INTERVAL = 1
SESSION_CLEANUP_INTERVAL = 300

# Embed colors (RGB)
COLOR_XP = 0x3498DB
COLOR_LEVEL_UP = 0xF1C40F
COLOR_ACHIEVEMENT = 0x9B59B6
COLOR_STREAK = 0xE67E22
COLOR_MILESTONE = 0x2ECC71

# Error messages
ERROR_GENERIC = "Oops! Something went wrong. Please try again! 🔧"
ERROR_PROGRESS = "Oops! Something went wrong while fetching your progress. Please try again! 🔧"
ERROR_NO_PROGRESS = "No progress recorded yet. Watch a video to get started! 🎬"
ERROR_NO_SESSION = "You're not watching anything right now. Use `/watch start` first! 🎬"
