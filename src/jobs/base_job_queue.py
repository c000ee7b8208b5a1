# src/jobs/base_job_queue.py - v1
"""Abstract training job queue interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from kgembed.core.models import JobStatus, TrainingJob


class BaseJobQueue(ABC):
    """One row per training job; the orchestrator is the only status writer."""

    @abstractmethod
    async def enqueue(
        self, scope_id: str, total_epoch_budget: int, now: datetime | None = None
    ) -> TrainingJob:
        """Create a PENDING job for a scope."""

    @abstractmethod
    async def get(self, job_id: str) -> TrainingJob | None:
        """Fetch one job by id."""

    @abstractmethod
    async def oldest_with_status(
        self, status: JobStatus, updated_before: datetime | None = None
    ) -> TrainingJob | None:
        """Oldest job (by created_at) with the given status.

        If updated_before is set, only jobs whose updated_at is strictly
        earlier qualify.
        """

    @abstractmethod
    async def update(self, job_id: str, **fields: Any) -> TrainingJob:
        """Apply field updates to a job and return the new row.

        updated_at is set to now unless given explicitly.

        Raises:
            KeyError: If the job does not exist.
        """

    @abstractmethod
    async def list_jobs(self) -> list[TrainingJob]:
        """All jobs, oldest first."""
