#!/usr/bin/env python3
"""
WaBot - WhatsApp Group Bot Entry Point
======================================

Loads .env, validates configuration and runs the bot until it is logged
out, restarted by an admin, or interrupted.

Exit codes:
    0: Clean stop (including the restart command)
    1: Invalid configuration or a crash
"""

import asyncio
import signal
import sys

from dotenv import load_dotenv

from wabot.bot import WaBot
from wabot.core.config import ConfigValidationError, load_config
from wabot.core.logger import logger
from wabot.utils.error_handler import ErrorHandler


async def main() -> int:
    """
    Main entry point for the WhatsApp bot.

    Handles the complete bot lifecycle:
    1. Loads environment configuration
    2. Builds the bot with its gateway transport
    3. Runs the session supervisor
    4. Shuts down gracefully on SIGINT/SIGTERM
    """
    load_dotenv()

    try:
        config = load_config()
    except ConfigValidationError as e:
        logger.error("Configuration Invalid", [
            ("Error", str(e)),
            ("Hint", "Check your .env file"),
        ])
        return 1

    logger.set_webhook(config.error_webhook_url)
    bot = WaBot(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot.request_stop)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    try:
        await bot.run()
    except Exception as e:
        ErrorHandler.handle(e, location="main.main", critical=True, gateway=config.gateway_url)
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Bot stopped by user (Ctrl+C)")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
