"""Process-wide logging setup."""

import logging
from typing import Optional

from .config import ConfigService

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: logging format string
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt or DEFAULT_FORMAT,
        force=True,
    )
    logger.debug(f"Logging configured at {level.upper()}")


def configure_from_config(config: ConfigService) -> None:
    """Apply the config's logging section."""
    configure_logging(
        level=config.get("logging.level", "INFO"),
        fmt=config.get("logging.format", DEFAULT_FORMAT),
    )
