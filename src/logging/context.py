# src/logging/context.py - v1
"""Contextual logging support: attach job_id, scope_id and phase to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per job invocation.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_scope_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scope_id", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    job_id: str | None = None
    scope_id: str | None = None
    phase: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        job_id=_job_id.get(),
        scope_id=_scope_id.get(),
        phase=_phase.get(),
    )


def set_job_context(job_id: str | None, scope_id: str | None) -> None:
    """Set job-level context (called once per selected job)."""
    _job_id.set(job_id)
    _scope_id.set(scope_id)


def set_phase(phase: str | None) -> None:
    """Set the current phase: select, fetch, train, checkpoint, finalize, predict."""
    _phase.set(phase)


def clear_context() -> None:
    _job_id.set(None)
    _scope_id.set(None)
    _phase.set(None)
