# imgcache/core/log.py
"""
Logging helpers.

Modules log through `logging.getLogger(__name__)`; nothing here is required for
the resolver to work. `configure_logging` optionally attaches a rotating file
handler to the package logger so that swallowed failures (decode errors, network
errors, timestamp refresh problems) leave a trace on disk.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "imgcache"
DEFAULT_LOG_PATH = Path("logs") / "imgcache.log"


def debug_enabled() -> bool:
    return os.getenv("IMGCACHE_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(log_path: str | Path | None = None, level: int | None = None) -> logging.Logger:
    """Create/reuse a rotating file handler on the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if level is None:
        level = logging.DEBUG if debug_enabled() else logging.INFO
    logger.setLevel(level)

    # Avoid duplicate handlers if reloaded in REPL/tests
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return logger

    path = Path(log_path) if log_path is not None else DEFAULT_LOG_PATH
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                datefmt="(%Y-%m-%d %H:%M:%S)",
            )
        )
        logger.addHandler(handler)
    except OSError:
        # log file unavailable; resolution continues without it
        logger.warning("could not open log file %s", path)
    return logger
