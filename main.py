"""
Scheduler Calendar — Entry Point.

Single entry point: `python main.py` starts the Telegram bot.
"""

import logging

from scheduler.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from scheduler.bot.telegram_bot import main

if __name__ == "__main__":
    main()
