# src/jobs/queue_factory.py - v1
"""Factory: instantiate the job queue from configuration."""

from __future__ import annotations

from kgembed.config.settings import Settings
from kgembed.jobs.base_job_queue import BaseJobQueue


def create_job_queue(settings: Settings) -> BaseJobQueue:
    """Create the job queue selected by JOB_QUEUE_BACKEND.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.job_queue_backend == "memory":
        from kgembed.jobs.memory_queue import InMemoryJobQueue

        return InMemoryJobQueue()

    if settings.job_queue_backend == "sqlite":
        from kgembed.jobs.sqlite_queue import SqliteJobQueue

        return SqliteJobQueue(settings.job_queue_path)

    raise ValueError(f"Unsupported job queue backend: {settings.job_queue_backend!r}")
