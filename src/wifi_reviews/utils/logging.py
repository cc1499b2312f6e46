"""Logging configuration."""

import logging
from rich.logging import RichHandler
from rich.console import Console

from wifi_reviews.config import settings

console = Console()

# Playwright and the OpenAI client are chatty at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose logging, overriding the configured log level

    Returns:
        Configured logger
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
            )
        ],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("wifi_reviews")
    logger.setLevel(level)

    return logger


# Package-level logger
logger = setup_logging()
