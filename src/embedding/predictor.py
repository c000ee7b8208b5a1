# src/embedding/predictor.py - v1
"""Read-only predictor over persisted TransE vectors.

The predictor works on a snapshot of persisted vectors (never on the live
training store). Distances are turned into scores with 1 / (1 + d), so
higher is better. Relations and entities are separate namespaces.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from kgembed.core.errors import DimensionMismatch, MissingEmbedding, ValidationError
from kgembed.core.models import (
    CompletenessMetrics,
    EmbeddingStats,
    EntityPrediction,
    EntitySimilarity,
    RelationPrediction,
    RelationSimilarity,
    Triplet,
)
from kgembed.core.vectors import (
    Vector,
    add,
    as_vector,
    cosine_similarity,
    euclidean_distance,
    subtract,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10
DEFAULT_CANDIDATE_LIMIT = 1000


def distance_to_score(distance: float) -> float:
    return 1.0 / (1.0 + distance)


class TransEPredictor:
    """Link prediction, similarity search and ranking metrics."""

    def __init__(
        self,
        entity_embeddings: Mapping[str, Sequence[float]],
        relation_embeddings: Mapping[str, Sequence[float]],
    ) -> None:
        self._entities = {k: as_vector(v) for k, v in entity_embeddings.items()}
        self._relations = {k: as_vector(v) for k, v in relation_embeddings.items()}
        self._dimensions = self._check_dimensions()

    @classmethod
    def from_rows(
        cls,
        entity_rows: Iterable[tuple[str, Any]],
        relation_rows: Iterable[tuple[str, Any]],
    ) -> TransEPredictor:
        """Build a predictor from persisted (key, vector) rows.

        Vectors stored as JSON strings are parsed; rows that do not yield a
        flat list of finite numbers are logged and skipped. Several rows may share
        a relation type; the first vector seen for a type is kept.
        """
        entities: dict[str, Vector] = {}
        for key, raw in entity_rows:
            vector = _parse_row_vector(raw, "entity", key)
            if vector is not None:
                entities[key] = vector

        relations: dict[str, Vector] = {}
        for key, raw in relation_rows:
            if key in relations:
                continue
            vector = _parse_row_vector(raw, "relation", key)
            if vector is not None:
                relations[key] = vector

        logger.info(
            "Loaded %d entity and %d relation embeddings",
            len(entities), len(relations),
        )
        return cls(entities, relations)

    def _check_dimensions(self) -> int:
        expected: int | None = None
        for kind, vectors in (("entity", self._entities), ("relation", self._relations)):
            for key, vector in vectors.items():
                if expected is None:
                    expected = len(vector)
                elif len(vector) != expected:
                    raise DimensionMismatch(expected, len(vector), f"{kind} {key}")
        return expected or 0

    # --- Introspection ---

    def is_ready(self) -> bool:
        return bool(self._entities) and bool(self._relations)

    def available_entities(self) -> list[str]:
        return list(self._entities)

    def available_relations(self) -> list[str]:
        return list(self._relations)

    def stats(self) -> EmbeddingStats:
        return EmbeddingStats(
            entity_count=len(self._entities),
            relation_count=len(self._relations),
            dimensions=self._dimensions,
        )

    # --- Link prediction ---

    def predict_tail(
        self, head: str, relation: str, top_k: int = DEFAULT_TOP_K
    ) -> list[EntityPrediction]:
        """Rank tails for (head, relation, ?) by closeness to head + relation."""
        target = add(self._entity(head), self._relation(relation))
        return self._rank_entities(target, exclude=head, top_k=top_k)

    def predict_head(
        self, relation: str, tail: str, top_k: int = DEFAULT_TOP_K
    ) -> list[EntityPrediction]:
        """Rank heads for (?, relation, tail) by closeness to tail - relation."""
        target = subtract(self._entity(tail), self._relation(relation))
        return self._rank_entities(target, exclude=tail, top_k=top_k)

    def predict_relation(
        self, head: str, tail: str, top_k: int = DEFAULT_TOP_K
    ) -> list[RelationPrediction]:
        """Rank relation types by closeness to tail - head."""
        target = subtract(self._entity(tail), self._entity(head))
        scored = [
            RelationPrediction(
                relation=key, score=distance_to_score(euclidean_distance(target, vector))
            )
            for key, vector in self._relations.items()
        ]
        scored.sort(key=lambda p: p.score, reverse=True)
        return scored[:top_k]

    def triplet_score(self, head: str, relation: str, tail: str) -> float:
        """Plausibility 1 / (1 + ||h + r - t||) in (0, 1]."""
        distance = euclidean_distance(
            add(self._entity(head), self._relation(relation)), self._entity(tail)
        )
        return distance_to_score(distance)

    # --- Similarity ---

    def find_similar_entities(
        self, entity: str, top_k: int = DEFAULT_TOP_K
    ) -> list[EntitySimilarity]:
        query = self._entity(entity)
        similar = [
            EntitySimilarity(entity=key, similarity=cosine_similarity(query, vector))
            for key, vector in self._entities.items()
            if key != entity
        ]
        similar.sort(key=lambda s: s.similarity, reverse=True)
        return similar[:top_k]

    def find_similar_relations(
        self, relation: str, top_k: int = DEFAULT_TOP_K
    ) -> list[RelationSimilarity]:
        query = self._relation(relation)
        similar = [
            RelationSimilarity(relation=key, similarity=cosine_similarity(query, vector))
            for key, vector in self._relations.items()
            if key != relation
        ]
        similar.sort(key=lambda s: s.similarity, reverse=True)
        return similar[:top_k]

    # --- Metrics ---

    def evaluate_graph_completeness(
        self,
        test_triplets: Sequence[Triplet],
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> CompletenessMetrics:
        """Mean rank, Hits@10 and MRR over head and tail prediction.

        For each triplet the true head is ranked within predict_head() and the
        true tail within predict_tail(), both capped at candidate_limit
        candidates. A true entity absent from its candidate list gets rank
        len(candidates) + 1.

        Raises:
            ValueError: If test_triplets is empty.
        """
        if not test_triplets:
            raise ValueError("test_triplets must not be empty")

        total_rank = 0.0
        hits = 0
        reciprocal_total = 0.0

        for triplet in test_triplets:
            head_rank = _rank_of(
                triplet.head,
                self.predict_head(triplet.relation, triplet.tail, candidate_limit),
            )
            tail_rank = _rank_of(
                triplet.tail,
                self.predict_tail(triplet.head, triplet.relation, candidate_limit),
            )

            total_rank += (head_rank + tail_rank) / 2
            hits += (head_rank <= 10) + (tail_rank <= 10)
            reciprocal_total += 1 / head_rank + 1 / tail_rank

        n = len(test_triplets)
        return CompletenessMetrics(
            mean_rank=total_rank / n,
            hits_at_10=hits / (2 * n),
            mean_reciprocal_rank=reciprocal_total / (2 * n),
            triplet_count=n,
        )

    # --- Internals ---

    def _entity(self, key: str) -> Vector:
        self._require_ready()
        try:
            return self._entities[key]
        except KeyError:
            raise MissingEmbedding("entity", key) from None

    def _relation(self, key: str) -> Vector:
        self._require_ready()
        try:
            return self._relations[key]
        except KeyError:
            raise MissingEmbedding("relation", key) from None

    def _require_ready(self) -> None:
        if not self.is_ready():
            raise ValidationError(
                f"Embeddings not loaded ({len(self._entities)} entities, "
                f"{len(self._relations)} relations)"
            )

    def _rank_entities(
        self, target: Vector, exclude: str, top_k: int
    ) -> list[EntityPrediction]:
        scored = [
            EntityPrediction(
                entity=key, score=distance_to_score(euclidean_distance(target, vector))
            )
            for key, vector in self._entities.items()
            if key != exclude
        ]
        scored.sort(key=lambda p: p.score, reverse=True)
        return scored[:top_k]


def _rank_of(entity: str, predictions: list[EntityPrediction]) -> int:
    for position, prediction in enumerate(predictions, start=1):
        if prediction.entity == entity:
            return position
    return len(predictions) + 1


def _parse_row_vector(raw: Any, kind: str, key: str) -> Vector | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse embedding for %s %s: %s", kind, key, exc)
            return None
    if not isinstance(raw, list):
        logger.warning(
            "Invalid embedding format for %s %s: %s", kind, key, type(raw).__name__,
        )
        return None
    try:
        vector = as_vector(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid embedding values for %s %s: %s", kind, key, exc)
        return None
    if not np.isfinite(vector).all():
        logger.warning("Non-finite embedding values for %s %s", kind, key)
        return None
    return vector
