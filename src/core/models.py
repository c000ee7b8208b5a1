# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# === GRAPH INPUT ===


class Triplet(BaseModel):
    """A (head, relation, tail) fact derived from one graph edge."""

    model_config = ConfigDict(frozen=True)

    head: str
    relation: str
    tail: str


class GraphNode(BaseModel):
    """Graph node as read from the external graph store."""

    id: str
    name: str = ""
    label: str | None = None
    properties: dict[str, Any] | None = None
    deleted_at: datetime | None = None


class GraphEdge(BaseModel):
    """Graph edge as read from the external graph store."""

    id: str
    from_id: str
    to_id: str
    type: str
    properties: dict[str, Any] | None = None
    deleted_at: datetime | None = None

    def to_triplet(self) -> Triplet:
        return Triplet(head=self.from_id, relation=self.type, tail=self.to_id)


# === TRAINING ===


class TrainingConfig(BaseModel):
    """Hyper-parameters of one training job. Immutable once the job starts.

    Serialized with camelCase keys (learningRate, batchSize) inside
    checkpoint blobs.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    dimensions: int = 45
    learning_rate: float = 0.01
    margin: float = 1.0
    epochs: int = 20
    batch_size: int = 1000

    @field_validator("dimensions", "epochs", "batch_size")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("learning_rate", "margin")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class TrainingReport(BaseModel):
    """Outcome of one call to TransETrainer.train()."""

    epochs_run: int
    final_loss: float
    stopped_early: bool = False


# === JOBS ===


class JobStatus(str, Enum):
    """Lifecycle of a training job.

    PENDING -> PROCESSING -> COMPLETED | FAILED. A stale PROCESSING job is
    picked up again without changing status.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TrainingJob(BaseModel):
    """One row of the training job queue."""

    id: str
    scope_id: str
    status: JobStatus = JobStatus.PENDING
    processed_epochs: int = 0
    total_epoch_budget: int = 200
    checkpoint_ref: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    updated_at: datetime
    completed_at: datetime | None = None
    error: str | None = None


# === PREDICTION ===


class EntityPrediction(BaseModel):
    entity: str
    score: float


class RelationPrediction(BaseModel):
    relation: str
    score: float


class EntitySimilarity(BaseModel):
    entity: str
    similarity: float


class RelationSimilarity(BaseModel):
    relation: str
    similarity: float


class CompletenessMetrics(BaseModel):
    """Link-prediction quality over a set of held-out triplets."""

    mean_rank: float
    hits_at_10: float
    mean_reciprocal_rank: float
    triplet_count: int = Field(ge=1)


class EmbeddingStats(BaseModel):
    entity_count: int
    relation_count: int
    dimensions: int


# === INVOCATION ===


class InvocationResult(BaseModel):
    """Summary returned by one training invocation."""

    message: str
    job_id: str | None = None
    nodes_processed: int = 0
    edges_processed: int = 0
    processed_epochs: int | None = None
    total_epochs: int | None = None
    final_loss: float | None = None
    completed: bool = False
    embeddings_persisted: int = 0
    embeddings_failed: int = 0
    error: str | None = None
