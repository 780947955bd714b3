from __future__ import annotations

import sys

from loguru import logger


LOG_FORMAT = "{level: <8} {name}:{line} {message}"


def configure_logging(level: str = "WARNING") -> None:
    """Route library log records to stderr at the given level."""
    logger.remove()
    logger.enable("plansync")
    # sys.stderr is looked up per message, not bound at configure time.
    logger.add(lambda msg: sys.stderr.write(msg), level=level.upper(), format=LOG_FORMAT, colorize=False)
