# src/embedding/checkpoint.py - v1
"""Checkpoint codec: EmbeddingStore <-> JSON blob.

Blob layout (camelCase keys, compatible with blobs written before the
schemaVersion field existed):

    {
      "schemaVersion": 1,
      "entityEmbeddings": {"<entity id>": [float, ...], ...},
      "relationEmbeddings": {"<relation type>": [float, ...], ...},
      "config": {"dimensions": 45, "learningRate": 0.01, "margin": 1.0,
                 "epochs": 20, "batchSize": 1000}
    }

A blob without schemaVersion is read as version 1. Newer versions are
rejected so an old worker never silently misreads an in-flight job.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from kgembed.core.errors import CheckpointError, DimensionMismatch
from kgembed.core.models import TrainingConfig
from kgembed.core.vectors import as_vector
from kgembed.embedding.store import EmbeddingStore

logger = logging.getLogger(__name__)

CHECKPOINT_SCHEMA_VERSION = 1


def save_model(store: EmbeddingStore) -> dict[str, Any]:
    """Serialize a store into a JSON-compatible dict."""
    logger.debug(
        "Saving model state: %d entities, %d relations",
        store.entity_count, store.relation_count,
    )
    return {
        "schemaVersion": CHECKPOINT_SCHEMA_VERSION,
        "entityEmbeddings": {k: v.tolist() for k, v in store.entities.items()},
        "relationEmbeddings": {k: v.tolist() for k, v in store.relations.items()},
        "config": store.config.model_dump(by_alias=True),
    }


def load_model(data: dict[str, Any]) -> EmbeddingStore:
    """Rebuild a store from save_model() output and renormalize every vector.

    Raises:
        CheckpointError: If the blob is malformed or from a newer schema.
        DimensionMismatch: If a vector does not match config.dimensions.
    """
    if not isinstance(data, dict):
        raise CheckpointError(f"Checkpoint must be a JSON object, got {type(data).__name__}")

    version = data.get("schemaVersion", 1)
    if not isinstance(version, int) or version > CHECKPOINT_SCHEMA_VERSION:
        raise CheckpointError(
            f"Unsupported checkpoint schema version {version!r} "
            f"(this worker reads up to {CHECKPOINT_SCHEMA_VERSION})"
        )

    for key in ("entityEmbeddings", "relationEmbeddings", "config"):
        if not isinstance(data.get(key), dict):
            raise CheckpointError(f"Checkpoint is missing object field {key!r}")

    try:
        config = TrainingConfig.model_validate(data["config"])
    except PydanticValidationError as exc:
        raise CheckpointError(f"Invalid checkpoint config: {exc}") from exc

    store = EmbeddingStore(
        config=config,
        entities=_decode_vectors(data["entityEmbeddings"], config.dimensions, "entity"),
        relations=_decode_vectors(data["relationEmbeddings"], config.dimensions, "relation"),
    )
    store.normalize_all()

    logger.debug(
        "Model restored: %d entities, %d relations, %d dimensions",
        store.entity_count, store.relation_count, config.dimensions,
    )
    return store


def encode_checkpoint(store: EmbeddingStore) -> bytes:
    return json.dumps(save_model(store)).encode("utf-8")


def decode_checkpoint(blob: bytes | str) -> EmbeddingStore:
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CheckpointError(f"Checkpoint is not valid JSON: {exc}") from exc
    return load_model(data)


def _decode_vectors(raw: dict[str, Any], dimensions: int, kind: str) -> dict:
    vectors = {}
    for key, values in raw.items():
        if not isinstance(values, list):
            raise CheckpointError(f"{kind} {key}: vector must be a list")
        try:
            vector = as_vector(values)
        except (TypeError, ValueError) as exc:
            raise CheckpointError(f"{kind} {key}: {exc}") from exc
        if len(vector) != dimensions:
            raise DimensionMismatch(len(vector), dimensions, f"checkpoint {kind} {key}")
        vectors[key] = vector
    return vectors
