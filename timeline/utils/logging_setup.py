"""Logging setup."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "TIMELINE_LOG_LEVEL"

_HANDLER_TAG = "_timeline_handler"


def resolve_level(level: Optional[str] = None, default_level: str = "INFO") -> int:
    """Explicit level wins, then the environment, then the configured default."""
    level_name = (level or os.environ.get(LEVEL_ENV_VAR) or default_level or "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    default_level: str = "INFO",
) -> logging.Logger:
    """Configure the root logger for console (stderr) and optional rotating file output.

    Calling it again replaces the handlers installed by a previous call
    instead of stacking duplicates.
    """
    resolved = resolve_level(level, default_level)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(resolved)

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(resolved)
    setattr(console, _HANDLER_TAG, True)
    root.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        # Rotate at 5MB, keep 7 backups
        fh = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.setLevel(resolved)
        setattr(fh, _HANDLER_TAG, True)
        root.addHandler(fh)

    logging.getLogger(__name__).debug(
        "Logging initialized at %s%s",
        logging.getLevelName(resolved),
        f"; file: {log_file}" if log_file else "",
    )
    return root
