# src/api/models.py - v1
"""API-level models: PredictionRequest, PredictionResponse."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from kgembed.core.models import (
    EntityPrediction,
    EntitySimilarity,
    RelationPrediction,
    RelationSimilarity,
)

Operation = Literal[
    "predict_tail",
    "predict_head",
    "predict_relation",
    "triplet_score",
    "similar_entities",
    "similar_relations",
]

# Fields each operation needs. similar_entities looks up `head`,
# similar_relations looks up `relation`.
_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "predict_tail": ("head", "relation"),
    "predict_head": ("relation", "tail"),
    "predict_relation": ("head", "tail"),
    "triplet_score": ("head", "relation", "tail"),
    "similar_entities": ("head",),
    "similar_relations": ("relation",),
}


class PredictionRequest(BaseModel):
    """Read-only query against the persisted embeddings of one scope."""

    scope_id: str
    operation: Operation
    head: str | None = None
    relation: str | None = None
    tail: str | None = None
    top_k: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_operation_fields(self) -> PredictionRequest:
        missing = [f for f in _REQUIRED_FIELDS[self.operation] if not getattr(self, f)]
        if missing:
            raise ValueError(f"{self.operation} requires: {', '.join(missing)}")
        return self


class PredictionResponse(BaseModel):
    """Ranked results, or a single score for triplet_score."""

    scope_id: str
    operation: Operation
    results: list[
        EntityPrediction | RelationPrediction | EntitySimilarity | RelationSimilarity
    ] = Field(default_factory=list)
    score: float | None = None
