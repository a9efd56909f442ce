#!/usr/bin/env python3
"""Main entry point for reelup Discord bot."""

import asyncio
import logging
import sys

import discord

from reelup.bot import create_bot
from reelup.config import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


async def main():
    """Main entry point."""
    logger.info("Starting reelup Discord bot...")

    # Load configuration
    try:
        config = load_config()
    except FileNotFoundError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Validate Discord token
    if not config.discord_token:
        logger.error("DISCORD_TOKEN environment variable not set")
        logger.info("Please copy .env.example to .env and add your Discord bot token")
        sys.exit(1)

    # Create and run bot
    bot = create_bot()

    try:
        await bot.start(config.discord_token)
    except discord.LoginFailure:
        logger.error("Invalid Discord token")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        await bot.close()


if __name__ == "__main__":
    asyncio.run(main())
