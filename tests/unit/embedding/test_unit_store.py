# tests/unit/embedding/test_unit_store.py - v1
"""Tests for embedding/store.py - EmbeddingStore."""

from __future__ import annotations

import pytest

from kgembed.core.errors import DimensionMismatch, MissingEmbedding
from kgembed.core.vectors import as_vector, l2_norm
from kgembed.embedding.store import EmbeddingStore


class TestEmbeddingStore:
    def test_empty(self, empty_store):
        assert empty_store.is_empty()
        assert empty_store.dimensions() == 0
        assert empty_store.entity_count == 0

    def test_lookup(self, small_config):
        store = EmbeddingStore(
            config=small_config,
            entities={"a": as_vector([1.0, 0.0])},
            relations={"r": as_vector([0.0, 1.0])},
        )
        assert store.entity("a").tolist() == [1.0, 0.0]
        assert store.relation("r").tolist() == [0.0, 1.0]
        assert not store.is_empty()

    def test_missing_entity(self, empty_store):
        with pytest.raises(MissingEmbedding, match="entity: ghost"):
            empty_store.entity("ghost")

    def test_missing_relation(self, empty_store):
        with pytest.raises(MissingEmbedding, match="relation: ghost"):
            empty_store.relation("ghost")

    def test_relation_namespace_separate(self, small_config):
        store = EmbeddingStore(config=small_config, entities={"x": as_vector([1.0])})
        with pytest.raises(MissingEmbedding):
            store.relation("x")

    def test_dimensions_consistent(self, small_config):
        store = EmbeddingStore(
            config=small_config,
            entities={"a": as_vector([1, 2, 3])},
            relations={"r": as_vector([1, 2, 3])},
        )
        assert store.dimensions() == 3

    def test_dimensions_inconsistent(self, small_config):
        store = EmbeddingStore(
            config=small_config,
            entities={"a": as_vector([1, 2, 3])},
            relations={"r": as_vector([1, 2])},
        )
        with pytest.raises(DimensionMismatch):
            store.dimensions()

    def test_normalize_all(self, small_config):
        store = EmbeddingStore(
            config=small_config,
            entities={"a": as_vector([3, 4]), "z": as_vector([0, 0])},
            relations={"r": as_vector([0, 2])},
        )
        store.normalize_all()
        assert l2_norm(store.entity("a")) == pytest.approx(1.0)
        assert l2_norm(store.relation("r")) == pytest.approx(1.0)
        assert store.entity("z").tolist() == [0.0, 0.0]
