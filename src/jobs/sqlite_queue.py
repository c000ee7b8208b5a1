# src/jobs/sqlite_queue.py - v1
"""SQLite-based job queue (JOB_QUEUE_BACKEND=sqlite).

Uses stdlib sqlite3. The full job row is stored as JSON next to indexed
status and timestamp columns used for selection. Timestamps are stored as
UTC ISO-8601 strings so they compare lexicographically.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from kgembed.core.models import JobStatus, TrainingJob
from kgembed.jobs.base_job_queue import BaseJobQueue

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS training_jobs (
    id TEXT PRIMARY KEY,
    scope_id TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_jobs_status_created ON training_jobs(status, created_at);
"""


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat()


class SqliteJobQueue(BaseJobQueue):
    """SQLite-backed job queue shared by invocations on one host."""

    def __init__(self, db_path: Path | str) -> None:
        db_path = str(db_path)
        if db_path != ":memory:":
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

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
        self.add(job)
        logger.info("Enqueued job %s for scope %s", job.id, scope_id)
        return job

    def add(self, job: TrainingJob) -> None:
        """Insert or replace a job row as-is."""
        self._conn.execute(
            """INSERT OR REPLACE INTO training_jobs
               (id, scope_id, status, created_at, updated_at, data)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                job.id,
                job.scope_id,
                job.status.value,
                _iso(job.created_at),
                _iso(job.updated_at),
                job.model_dump_json(),
            ),
        )
        self._conn.commit()

    async def get(self, job_id: str) -> TrainingJob | None:
        row = self._conn.execute(
            "SELECT data FROM training_jobs WHERE id = ?", (job_id,)
        ).fetchone()
        return TrainingJob(**json.loads(row[0])) if row else None

    async def oldest_with_status(
        self, status: JobStatus, updated_before: datetime | None = None
    ) -> TrainingJob | None:
        query = "SELECT data FROM training_jobs WHERE status = ?"
        params: list[Any] = [status.value]
        if updated_before is not None:
            query += " AND updated_at < ?"
            params.append(_iso(updated_before))
        query += " ORDER BY created_at LIMIT 1"
        row = self._conn.execute(query, params).fetchone()
        return TrainingJob(**json.loads(row[0])) if row else None

    async def update(self, job_id: str, **fields: Any) -> TrainingJob:
        current = await self.get(job_id)
        if current is None:
            raise KeyError(job_id)
        fields.setdefault("updated_at", datetime.now(timezone.utc))
        job = TrainingJob.model_validate({**current.model_dump(), **fields})
        self.add(job)
        return job

    async def list_jobs(self) -> list[TrainingJob]:
        rows = self._conn.execute(
            "SELECT data FROM training_jobs ORDER BY created_at"
        ).fetchall()
        return [TrainingJob(**json.loads(row[0])) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
