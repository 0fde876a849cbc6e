#!/usr/bin/env python3
"""
Vocabulary Telegram Bot
Main application entry point
"""

import asyncio
import logging
from vocab_bot.config import get_settings
from vocab_bot.bot_handler import BotHandler


async def main():
    """Main application entry point"""
    # Load configuration
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # httpx logs every Bot API request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Starting Vocabulary Bot...")

    # Initialize bot handler
    bot_handler = BotHandler(settings)

    try:
        # Start bot
        await bot_handler.start()
        logger.info("Bot stopped gracefully")
    except KeyboardInterrupt:
        logger.info("Shutdown requested, stopping bot...")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
