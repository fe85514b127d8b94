"""
Initialization - Logging Module.

Configures loguru logger with file rotation and retention.
"""

import sys

from loguru import logger

from wallet_monitor.config.settings import Settings


def setup_logging(app_settings: Settings) -> None:
    """Configure logger: stderr plus a rotating file."""
    logger.remove()
    logger.add(sys.stderr, level=app_settings.log_level)
    logger.add(
        app_settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=app_settings.log_level,
        encoding="utf-8",
    )

    logger.info("Starting Wallet Monitor...")
