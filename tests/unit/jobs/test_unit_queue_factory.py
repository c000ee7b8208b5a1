# tests/unit/jobs/test_unit_queue_factory.py - v1
"""Tests for jobs/queue_factory.py."""

from __future__ import annotations

from kgembed.config.settings import Settings
from kgembed.jobs.memory_queue import InMemoryJobQueue
from kgembed.jobs.queue_factory import create_job_queue
from kgembed.jobs.sqlite_queue import SqliteJobQueue


class TestCreateJobQueue:
    def test_memory(self):
        assert isinstance(create_job_queue(Settings(_env_file=None, job_queue_backend="memory")),
                          InMemoryJobQueue)

    def test_sqlite(self, tmp_path):
        settings = Settings(_env_file=None, job_queue_path=tmp_path / "q" / "jobs.db")
        queue = create_job_queue(settings)
        assert isinstance(queue, SqliteJobQueue)
        queue.close()
        assert (tmp_path / "q" / "jobs.db").exists()
