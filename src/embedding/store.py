# src/embedding/store.py - v1
"""Embedding store: entity and relation vectors plus the training config.

A store is created per job run and passed explicitly to the trainer, the
checkpoint codec and the finalize step. Nothing here is module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from kgembed.core.errors import DimensionMismatch, MissingEmbedding
from kgembed.core.models import TrainingConfig
from kgembed.core.vectors import Vector, normalize_in_place


@dataclass
class EmbeddingStore:
    """Two key -> vector maps owned by one training run.

    Relation vectors are keyed by relation type: every edge sharing a type
    shares a single vector.
    """

    config: TrainingConfig
    entities: dict[str, Vector] = field(default_factory=dict)
    relations: dict[str, Vector] = field(default_factory=dict)

    @property
    def entity_count(self) -> int:
        return len(self.entities)

    @property
    def relation_count(self) -> int:
        return len(self.relations)

    def is_empty(self) -> bool:
        return not self.entities and not self.relations

    def entity(self, entity_id: str) -> Vector:
        try:
            return self.entities[entity_id]
        except KeyError:
            raise MissingEmbedding("entity", entity_id) from None

    def relation(self, relation_type: str) -> Vector:
        try:
            return self.relations[relation_type]
        except KeyError:
            raise MissingEmbedding("relation", relation_type) from None

    def dimensions(self) -> int:
        """Common length of every stored vector (0 for an empty store).

        Raises:
            DimensionMismatch: If any two stored vectors differ in length.
        """
        expected: int | None = None
        for key, vector in self._all_vectors():
            if expected is None:
                expected = len(vector)
            elif len(vector) != expected:
                raise DimensionMismatch(expected, len(vector), key)
        return expected or 0

    def normalize_all(self) -> None:
        """L2-normalize every entity and relation vector in place."""
        for _, vector in self._all_vectors():
            normalize_in_place(vector)

    def _all_vectors(self) -> Iterator[tuple[str, Vector]]:
        for key, vector in self.entities.items():
            yield f"entity {key}", vector
        for key, vector in self.relations.items():
            yield f"relation {key}", vector
