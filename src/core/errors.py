# src/core/errors.py - v1
"""Error taxonomy shared by the trainer, the predictor and the job orchestrator.

ValidationError subclasses abort the single query or operation that raised
them and are never retried. PersistenceError covers one id that could not be
written during finalization. JobError wraps anything else that fails a job.
"""

from __future__ import annotations


class EmbeddingError(Exception):
    """Base class for every kgembed error."""


class ValidationError(EmbeddingError):
    """Invalid input to a vector operation or an embedding query."""


class DimensionMismatch(ValidationError):
    """Two vectors that must share a length do not."""

    def __init__(self, left: int, right: int, context: str = "") -> None:
        self.left = left
        self.right = right
        self.context = context
        where = f" in {context}" if context else ""
        super().__init__(
            f"Vector length mismatch{where}: {left} != {right}"
        )


class MissingEmbedding(ValidationError):
    """A referenced entity or relation has no stored vector."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"Embedding not found for {kind}: {key}")


class CheckpointError(EmbeddingError):
    """A checkpoint blob is malformed or uses an unsupported schema version."""


class PersistenceError(EmbeddingError):
    """Writing one final embedding failed after all retries."""

    def __init__(self, kind: str, key: str, last_error: Exception) -> None:
        self.kind = kind
        self.key = key
        self.last_error = last_error
        super().__init__(f"Failed to persist {kind} {key}: {last_error}")


class JobError(EmbeddingError):
    """A training job failed; the job has been marked FAILED."""

    def __init__(self, job_id: str, message: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} failed: {message}")
