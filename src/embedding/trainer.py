# src/embedding/trainer.py - v1
"""TransE trainer: initialization, scoring, negative sampling and updates.

score(h, r, t) = ||h + r - t||, lower is more plausible. Training minimizes
the margin ranking loss max(0, margin + score(pos) - score(neg)) with a
bounded step heuristic rather than the analytic TransE gradient. The
heuristic is kept as-is so retrained vectors stay comparable with vectors
already persisted by earlier runs.

All randomness (initial vectors, shuffling, corruption) comes from the
numpy Generator passed in, so a fixed seed reproduces a run.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Sequence

import numpy as np

from kgembed.core.models import TrainingConfig, TrainingReport, Triplet
from kgembed.core.vectors import (
    Vector,
    add,
    euclidean_distance,
    normalize_in_place,
    subtract,
    xavier_uniform,
)
from kgembed.embedding.store import EmbeddingStore

logger = logging.getLogger(__name__)

# Renormalize every NORMALIZE_EVERY epochs (epoch 0, 5, 10, ...).
NORMALIZE_EVERY = 5
# Stop the slice once the epoch-average loss drops below this.
EARLY_STOP_LOSS = 0.01
# Step size is learning_rate / max(score, MIN_SCORE), capped at
# learning_rate * MAX_STEP_MULTIPLIER.
MIN_SCORE = 0.1
MAX_STEP_MULTIPLIER = 10.0

ProgressCallback = Callable[[int, float], None]


def step_size(learning_rate: float, score: float) -> float:
    """Bounded per-update step for a triplet at the given score."""
    return min(
        learning_rate / max(score, MIN_SCORE),
        learning_rate * MAX_STEP_MULTIPLIER,
    )


class TransETrainer:
    """Trains the vectors of an EmbeddingStore in place."""

    def __init__(
        self,
        store: EmbeddingStore,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._store = store
        self._rng = rng if rng is not None else np.random.default_rng()

    @property
    def store(self) -> EmbeddingStore:
        return self._store

    @property
    def config(self) -> TrainingConfig:
        return self._store.config

    # --- Initialization ---

    def initialize(self, entities: Iterable[str], relations: Iterable[str]) -> bool:
        """Create a random unit vector for every distinct entity and relation.

        Skipped entirely when the store already holds vectors, so a store
        restored from a checkpoint is never re-randomized.

        Returns:
            True if vectors were created, False if initialization was skipped.
        """
        if not self._store.is_empty():
            logger.info(
                "Skipping initialization, store already holds %d entities and %d relations",
                self._store.entity_count, self._store.relation_count,
            )
            return False

        dims = self.config.dimensions
        for entity_id in dict.fromkeys(entities):
            self._store.entities[entity_id] = self._random_unit_vector(dims)
        for relation_type in dict.fromkeys(relations):
            self._store.relations[relation_type] = self._random_unit_vector(dims)

        logger.info(
            "Initialized %d entities and %d relations with %d dimensions",
            self._store.entity_count, self._store.relation_count, dims,
        )
        return True

    def _random_unit_vector(self, dimensions: int) -> Vector:
        vector = xavier_uniform(dimensions, self._rng)
        normalize_in_place(vector)
        return vector

    # --- Scoring ---

    def score(self, head: str, relation: str, tail: str) -> float:
        """Distance ||h + r - t|| for stored ids (lower is better)."""
        return _distance_score(
            self._store.entity(head),
            self._store.relation(relation),
            self._store.entity(tail),
        )

    # --- Negative sampling ---

    def generate_negative(
        self, positive: Triplet, entity_ids: Sequence[str]
    ) -> Triplet:
        """Corrupt the head or the tail (50/50) with a different random entity.

        Args:
            positive: Triplet to corrupt.
            entity_ids: Distinct candidate entity ids.

        Raises:
            ValueError: If fewer than two candidate entities are available.
        """
        if len(entity_ids) < 2:
            raise ValueError(
                f"Negative sampling needs at least 2 entities, got {len(entity_ids)}"
            )

        corrupt_head = self._rng.random() < 0.5
        original = positive.head if corrupt_head else positive.tail
        replacement = original
        while replacement == original:
            replacement = entity_ids[int(self._rng.integers(len(entity_ids)))]

        if corrupt_head:
            return positive.model_copy(update={"head": replacement})
        return positive.model_copy(update={"tail": replacement})

    # --- Updates ---

    def train_triplet(self, positive: Triplet, negative: Triplet) -> float:
        """Apply one margin-ranking update and return the loss.

        When margin + score(positive) <= score(negative) the loss is 0 and
        no vector is touched.
        """
        head = self._store.entity(positive.head)
        relation = self._store.relation(positive.relation)
        tail = self._store.entity(positive.tail)
        neg_head = self._store.entity(negative.head)
        neg_tail = self._store.entity(negative.tail)

        positive_score = _distance_score(head, relation, tail)
        negative_score = _distance_score(neg_head, relation, neg_tail)

        loss = max(0.0, self.config.margin + positive_score - negative_score)
        if loss > 0:
            self._update(
                head, relation, tail, neg_head, neg_tail,
                positive_score, negative_score,
            )
        return loss

    def _update(
        self,
        head: Vector,
        relation: Vector,
        tail: Vector,
        neg_head: Vector,
        neg_tail: Vector,
        positive_score: float,
        negative_score: float,
    ) -> None:
        learning_rate = self.config.learning_rate

        # Pull the positive triplet together.
        if positive_score > 0:
            step = step_size(learning_rate, positive_score)
            diff = subtract(add(head, relation), tail)
            head -= diff * step
            relation -= diff * step
            tail += diff * step

        # Push the negative triplet apart. diff is taken after the positive
        # update, since the relation vector is shared.
        if negative_score > 0:
            step = step_size(learning_rate, negative_score)
            diff = subtract(add(neg_head, relation), neg_tail)
            neg_head += diff * step
            relation += diff * step
            neg_tail -= diff * step

    # --- Loops ---

    def train_batch(self, triplets: Sequence[Triplet], entity_ids: Sequence[str]) -> float:
        """Train on one batch and return the average loss of processed triplets.

        Triplets referencing an id without a vector are logged and skipped.

        Raises:
            ValueError: If no triplet in the batch could be processed.
        """
        total_loss = 0.0
        processed = 0
        skipped = 0

        for triplet in triplets:
            if not self._has_vectors(triplet):
                logger.warning(
                    "Skipping triplet with missing embeddings: %s -[%s]-> %s",
                    triplet.head, triplet.relation, triplet.tail,
                )
                skipped += 1
                continue
            negative = self.generate_negative(triplet, entity_ids)
            total_loss += self.train_triplet(triplet, negative)
            processed += 1

        if processed == 0:
            raise ValueError(
                f"No triplets could be processed in this batch "
                f"({len(triplets)} total, {skipped} skipped)"
            )
        return total_loss / processed

    def train(
        self,
        triplets: Sequence[Triplet],
        entities: Iterable[str],
        relations: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> TrainingReport:
        """Run up to config.epochs epochs over the triplets.

        Each epoch shuffles the triplets, trains batch by batch and averages
        the batch losses. Vectors are renormalized every NORMALIZE_EVERY
        epochs, and the loop stops early once the epoch loss falls below
        EARLY_STOP_LOSS.

        Args:
            triplets: Training facts.
            entities: Entity ids to initialize (ignored if the store is not empty).
            relations: Relation types to initialize (same).
            on_progress: Called with (epoch, epoch_loss) after every epoch.

        Returns:
            TrainingReport with the number of epochs run and the last epoch loss.

        Raises:
            ValueError: If there are no triplets or fewer than two entities.
        """
        entity_list = list(dict.fromkeys(entities))
        self.initialize(entity_list, relations)

        if not triplets:
            raise ValueError("No triplets to train on")

        entity_ids = [e for e in entity_list if e in self._store.entities]
        if len(entity_ids) < 2:
            raise ValueError(
                f"Training needs at least 2 entities with embeddings, got {len(entity_ids)}"
            )

        config = self.config
        batch_count = math.ceil(len(triplets) / config.batch_size)
        logger.info(
            "Training %d triplets over %d entities for up to %d epochs (%d batches/epoch)",
            len(triplets), len(entity_ids), config.epochs, batch_count,
        )

        epoch_loss = 0.0
        epochs_run = 0
        stopped_early = False

        for epoch in range(config.epochs):
            order = self._rng.permutation(len(triplets))
            shuffled = [triplets[i] for i in order]

            total_loss = 0.0
            for index, start in enumerate(range(0, len(shuffled), config.batch_size)):
                batch = shuffled[start:start + config.batch_size]
                try:
                    total_loss += self.train_batch(batch, entity_ids)
                except ValueError as exc:
                    logger.warning(
                        "Batch %d/%d skipped: %s", index + 1, batch_count, exc,
                    )

            epoch_loss = total_loss / batch_count
            epochs_run = epoch + 1

            if on_progress is not None:
                on_progress(epoch, epoch_loss)

            if epoch % NORMALIZE_EVERY == 0:
                self._store.normalize_all()

            if epoch_loss < EARLY_STOP_LOSS:
                logger.info("Early stop at epoch %d, loss %.4f", epoch, epoch_loss)
                stopped_early = True
                break

            if epoch % 10 == 0:
                logger.debug("Epoch %d/%d, loss %.4f", epoch, config.epochs, epoch_loss)

        return TrainingReport(
            epochs_run=epochs_run,
            final_loss=epoch_loss,
            stopped_early=stopped_early,
        )

    def _has_vectors(self, triplet: Triplet) -> bool:
        return (
            triplet.head in self._store.entities
            and triplet.tail in self._store.entities
            and triplet.relation in self._store.relations
        )


def _distance_score(head: Vector, relation: Vector, tail: Vector) -> float:
    return euclidean_distance(add(head, relation), tail)
