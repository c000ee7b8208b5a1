# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides a small knowledge graph, deterministic settings, in-memory queue
and graph source, a temp blob store and a controllable clock. No external
services: everything runs in memory or under tmp_path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pytest

from kgembed.config.settings import Settings
from kgembed.core.models import GraphEdge, GraphNode, TrainingConfig, Triplet
from kgembed.embedding.store import EmbeddingStore
from kgembed.graph.networkx_source import NetworkxGraphSource
from kgembed.jobs.memory_queue import InMemoryJobQueue
from kgembed.storage.local_blob_store import LocalBlobStore

SCOPE_ID = "topic-1"
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now




# === FIXTURES: Sample data ===


@pytest.fixture
def sample_nodes() -> list[GraphNode]:
    return [
        GraphNode(id="alice", name="Alice", label="Person", properties={"age": 30}),
        GraphNode(id="bob", name="Bob", label="Person"),
        GraphNode(id="acme", name="Acme", label="Company", properties={"sector": "tools"}),
        GraphNode(id="paris", name="Paris", label="City"),
    ]


@pytest.fixture
def sample_edges() -> list[GraphEdge]:
    return [
        GraphEdge(id="e1", from_id="alice", to_id="bob", type="knows"),
        GraphEdge(id="e2", from_id="alice", to_id="acme", type="works_at"),
        GraphEdge(id="e3", from_id="bob", to_id="acme", type="works_at"),
        GraphEdge(id="e4", from_id="acme", to_id="paris", type="located_in",
                  properties={"since": 1999}),
    ]


@pytest.fixture
def sample_triplets(sample_edges: list[GraphEdge]) -> list[Triplet]:
    return [edge.to_triplet() for edge in sample_edges]


@pytest.fixture
def small_config() -> TrainingConfig:
    return TrainingConfig(dimensions=8, learning_rate=0.01, margin=1.0, epochs=5, batch_size=2)


@pytest.fixture
def empty_store(small_config: TrainingConfig) -> EmbeddingStore:
    return EmbeddingStore(config=small_config)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


# === FIXTURES: Runtime collaborators ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Deterministic settings: 100 epoch budget in slices of 25."""
    return Settings(
        _env_file=None,
        transe_dimensions=45,
        context_dimensions=5,
        embedding_total_dimensions=50,
        epochs_per_invocation=25,
        total_epoch_budget=100,
        training_seed=7,
        persist_base_delay_s=0.0,
        checkpoint_root=tmp_path / "checkpoints",
        job_queue_backend="memory",
        job_queue_path=tmp_path / "jobs.db",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def job_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue()


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "checkpoints")


@pytest.fixture
def graph_source(
    sample_nodes: list[GraphNode], sample_edges: list[GraphEdge]
) -> NetworkxGraphSource:
    source = NetworkxGraphSource()
    source.load(SCOPE_ID, sample_nodes, sample_edges)
    return source


@pytest.fixture
def scope_id() -> str:
    return SCOPE_ID
