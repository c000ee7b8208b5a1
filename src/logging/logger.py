# src/logging/logger.py - v1
"""Logging setup for the ``kgembed`` logger tree.

Two output formats share the job context from logging.context:

    json  {"timestamp", "level", "logger", "message", "context"?, "data"?, "exception"?}
    text  2024-01-01 12:00:00 [INFO    ] kgembed.jobs.orchestrator [job 42] (train): ...

Record timestamps come from ``record.created`` so buffered or rotated output
keeps emission order.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kgembed.logging.context import get_context

ROOT_LOGGER = "kgembed"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with job context and structured extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_context().as_dict()
        if context:
            entry["context"] = context

        # logger.info(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line format for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        prefix = (
            f"{_record_time(record):%Y-%m-%d %H:%M:%S} "
            f"[{record.levelname:8s}] {record.name}"
        )
        if ctx.job_id:
            prefix += f" [job {ctx.job_id}]"
        if ctx.phase:
            prefix += f" ({ctx.phase})"

        line = f"{prefix}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def get_logger(name: str) -> logging.Logger:
    """Child of the kgembed root logger. setup_logging() configures the tree."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Attach stdout (and optionally a rotating file) to the kgembed root logger.

    Calling it again replaces the previous handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text"; anything else falls back to text.
        log_file: Rotating log file, in addition to stdout.
        rotation: Size that triggers rotation, e.g. "10MB".
        retention: Rotated files kept.

    Returns:
        The configured root logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    formatter = _FORMATTERS.get(log_format, TextFormatter)()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        from kgembed.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root
