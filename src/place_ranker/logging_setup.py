"""Centralized logging setup with optional rotating file output."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 5

ENV_LOG_LEVEL = "PLACE_RANKER_LOG_LEVEL"
ENV_LOG_FILE = "PLACE_RANKER_LOG_FILE"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger for console output plus an optional log file."""
    level_name = (level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).strip().upper()
    resolved_level = getattr(logging, level_name, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = (os.getenv(ENV_LOG_FILE) or "").strip()
    if log_file:
        try:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    path,
                    maxBytes=DEFAULT_LOG_MAX_BYTES,
                    backupCount=DEFAULT_LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            )
        except OSError as error:
            logging.basicConfig(
                level=resolved_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True
            )
            logging.getLogger(__name__).warning(
                "File logging disabled: failed to open %s (%s)", log_file, error
            )
            return

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(resolved_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(resolved_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
