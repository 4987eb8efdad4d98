"""Logging configuration for docsearch."""

import os
import sys

from loguru import logger


def configure_logging(*, verbose: bool = False) -> None:
    """Send loguru output to stderr; DEBUG when verbose, else $DOCSEARCH_LOG_LEVEL or INFO."""
    logger.remove()
    level = "DEBUG" if verbose else os.environ.get("DOCSEARCH_LOG_LEVEL", "INFO").upper()
    logger.add(sys.stderr, level=level, format="{level.icon} {name}: {message}")
