"""
Loguru logging configuration.

Console logging for development, structured JSON for everything else.
"""

import sys

from loguru import logger


def configure_logging(environment: str = "development", level: str = "INFO") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for console, anything else for JSON.
        level: Minimum level for the stderr sink.
    """
    # Remove default handler
    logger.remove()

    if environment == "development":
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            ),
            level=level,
            colorize=True,
        )
    else:
        # JSON format for production (machine-parseable)
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            serialize=True,
        )
