# src/jobs/memory_queue.py - v1
"""In-memory job queue (JOB_QUEUE_BACKEND=memory)."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from kgembed.core.models import JobStatus, TrainingJob
from kgembed.jobs.base_job_queue import BaseJobQueue


class InMemoryJobQueue(BaseJobQueue):
    """Dict-backed job queue for tests and single-process use."""

    def __init__(self) -> None:
        self._jobs: dict[str, TrainingJob] = {}

    async def enqueue(
        self, scope_id: str, total_epoch_budget: int, now: datetime | None = None
    ) -> TrainingJob:
        ts = now or datetime.now(timezone.utc)
        job = TrainingJob(
            id=uuid.uuid4().hex,
            scope_id=scope_id,
            total_epoch_budget=total_epoch_budget,
            created_at=ts,
            updated_at=ts,
        )
        self._jobs[job.id] = job
        return job

    def add(self, job: TrainingJob) -> None:
        """Insert a prebuilt job row as-is."""
        self._jobs[job.id] = job

    async def get(self, job_id: str) -> TrainingJob | None:
        return self._jobs.get(job_id)

    async def oldest_with_status(
        self, status: JobStatus, updated_before: datetime | None = None
    ) -> TrainingJob | None:
        candidates = [
            job for job in self._jobs.values()
            if job.status == status
            and (updated_before is None or job.updated_at < updated_before)
        ]
        return min(candidates, key=lambda j: j.created_at, default=None)

    async def update(self, job_id: str, **fields: Any) -> TrainingJob:
        if job_id not in self._jobs:
            raise KeyError(job_id)
        fields.setdefault("updated_at", datetime.now(timezone.utc))
        updated = self._jobs[job_id].model_copy(update=fields)
        self._jobs[job_id] = TrainingJob.model_validate(updated.model_dump())
        return self._jobs[job_id]

    async def list_jobs(self) -> list[TrainingJob]:
        return sorted(self._jobs.values(), key=lambda j: j.created_at)
