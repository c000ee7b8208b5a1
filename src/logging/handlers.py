# src/logging/handlers.py - v1
"""Rotating log file handler configured from LOG_ROTATION / LOG_RETENTION."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"(\d+)\s*([KMG]?B)", re.IGNORECASE)
_UNIT_SHIFT = {"B": 0, "KB": 10, "MB": 20, "GB": 30}


def parse_size(size_str: str) -> int:
    """Bytes for a size such as "10MB", "512 KB" or "100b"."""
    match = _SIZE_PATTERN.fullmatch(size_str.strip())
    if match is None:
        raise ValueError(f"Unrecognized log rotation size {size_str!r}, expected e.g. '10MB'")
    count, unit = match.groups()
    return int(count) << _UNIT_SHIFT[unit.upper()]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """UTF-8 handler rolling over at ``rotation`` and keeping ``retention`` backups.

    The parent directory is created when missing.
    """
    target = Path(log_file).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        target,
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
