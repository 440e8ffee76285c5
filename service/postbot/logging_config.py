"""
Logging configuration for the bot service.
"""

import logging
import os
import sys

LOG_FORMAT = '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'

# httpx logs every request URL at INFO; Bot API URLs contain the bot token
NOISY_LOGGERS = ("httpx", "httpcore", "telegram.ext", "pymongo")


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the `postbot` logger once and quiet third-party request logs."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger("postbot")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


# Global logger instance
bot_logger = setup_logging()
