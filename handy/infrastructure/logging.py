"""Logging setup and configuration."""

import logging
from pathlib import Path
from typing import Optional

from .config import get_env_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(log_dir: Optional[Path] = None) -> logging.Logger:
    """Set up application logging.

    Console logging is always configured. A file handler is
    added when a log directory is passed in or ``LOG_DIR`` is set.
    """
    level_name = (get_env_var("LOG_LEVEL", "INFO") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger("handy")
    root.setLevel(level)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)

    if log_dir is None and get_env_var("LOG_DIR"):
        log_dir = Path(get_env_var("LOG_DIR"))

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "handy.log"
        if not any(isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file
                   for h in root.handlers):
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(name)
