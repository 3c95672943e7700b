"""Maestro logging configuration.

The TUI owns the terminal, so log records never go to stderr while it runs.
Logs are written to `~/.maestro/logs/maestro.log`; the level comes from
`MAESTRO_LOG_LEVEL` (default INFO).
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from maestro.paths import log_dir

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_ROOT_LOGGER = "maestro"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure Maestro logging.

    Args:
        level: Optional override for `MAESTRO_LOG_LEVEL`.
    """
    if level:
        os.environ["MAESTRO_LOG_LEVEL"] = level
    resolved = os.environ.get("MAESTRO_LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(resolved)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    directory = log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            directory / "maestro.log", maxBytes=2_000_000, backupCount=3, encoding="utf-8"
        )
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
