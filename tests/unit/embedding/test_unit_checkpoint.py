# tests/unit/embedding/test_unit_checkpoint.py - v1
"""Tests for embedding/checkpoint.py - checkpoint blob codec."""

from __future__ import annotations

import json

import numpy as np
import pytest

from kgembed.core.errors import CheckpointError, DimensionMismatch
from kgembed.core.models import TrainingConfig
from kgembed.core.vectors import l2_norm
from kgembed.embedding.checkpoint import (
    CHECKPOINT_SCHEMA_VERSION,
    decode_checkpoint,
    encode_checkpoint,
    load_model,
    save_model,
)
from kgembed.embedding.trainer import TransETrainer


@pytest.fixture
def trained_store(empty_store, rng):
    TransETrainer(empty_store, rng=rng).initialize(["a", "b", "c"], ["r", "s"])
    return empty_store


def _blob(**overrides):
    data = {
        "entityEmbeddings": {"a": [3.0, 4.0]},
        "relationEmbeddings": {"r": [0.0, 2.0]},
        "config": {"dimensions": 2, "learningRate": 0.01, "margin": 1.0,
                   "epochs": 20, "batchSize": 10},
    }
    data.update(overrides)
    return data


class TestSaveModel:
    def test_layout(self, trained_store):
        data = save_model(trained_store)
        assert data["schemaVersion"] == CHECKPOINT_SCHEMA_VERSION
        assert set(data["entityEmbeddings"]) == {"a", "b", "c"}
        assert set(data["relationEmbeddings"]) == {"r", "s"}
        assert data["config"]["learningRate"] == 0.01
        assert data["config"]["batchSize"] == 2

    def test_json_compatible(self, trained_store):
        json.dumps(save_model(trained_store))


class TestLoadModel:
    def test_round_trip(self, trained_store):
        restored = decode_checkpoint(encode_checkpoint(trained_store))
        assert restored.config == trained_store.config
        for key, vector in trained_store.entities.items():
            assert np.allclose(restored.entity(key), vector)
        for key, vector in trained_store.relations.items():
            assert np.allclose(restored.relation(key), vector)

    def test_renormalizes(self):
        store = load_model(_blob())
        assert store.entity("a").tolist() == pytest.approx([0.6, 0.8])
        assert l2_norm(store.relation("r")) == pytest.approx(1.0)

    def test_missing_version_reads_as_v1(self):
        assert "schemaVersion" not in _blob()
        assert load_model(_blob()).entity_count == 1

    def test_newer_version_rejected(self):
        with pytest.raises(CheckpointError, match="schema version"):
            load_model(_blob(schemaVersion=CHECKPOINT_SCHEMA_VERSION + 1))

    def test_missing_field(self):
        data = _blob()
        del data["relationEmbeddings"]
        with pytest.raises(CheckpointError, match="relationEmbeddings"):
            load_model(data)

    def test_invalid_config(self):
        with pytest.raises(CheckpointError, match="config"):
            load_model(_blob(config={"dimensions": 0}))

    def test_vector_length_mismatch(self):
        with pytest.raises(DimensionMismatch):
            load_model(_blob(entityEmbeddings={"a": [1.0, 2.0, 3.0]}))

    def test_non_list_vector(self):
        with pytest.raises(CheckpointError, match="must be a list"):
            load_model(_blob(entityEmbeddings={"a": "1,2"}))

    def test_not_an_object(self):
        with pytest.raises(CheckpointError):
            load_model([1, 2])  # type: ignore[arg-type]

    def test_invalid_json(self):
        with pytest.raises(CheckpointError, match="not valid JSON"):
            decode_checkpoint(b"{not json")

    def test_config_defaults_when_partial(self):
        store = load_model(_blob(config={"dimensions": 2}))
        assert store.config == TrainingConfig(dimensions=2)
