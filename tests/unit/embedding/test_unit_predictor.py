# tests/unit/embedding/test_unit_predictor.py - v1
"""Tests for embedding/predictor.py - link prediction, similarity and metrics."""

from __future__ import annotations

import json
import math

import pytest

from kgembed.core.errors import DimensionMismatch, MissingEmbedding, ValidationError
from kgembed.core.models import Triplet
from kgembed.embedding.predictor import TransEPredictor, distance_to_score


@pytest.fixture
def predictor() -> TransEPredictor:
    return TransEPredictor(
        entity_embeddings={
            "a": [0.0, 0.0],
            "b": [1.0, 0.0],
            "c": [0.0, 1.0],
            "d": [3.0, 3.0],
        },
        relation_embeddings={"r": [1.0, 0.0], "s": [0.0, 1.0]},
    )


class TestIntrospection:
    def test_ready(self, predictor):
        assert predictor.is_ready()
        assert predictor.available_entities() == ["a", "b", "c", "d"]
        assert predictor.available_relations() == ["r", "s"]

    def test_stats(self, predictor):
        stats = predictor.stats()
        assert (stats.entity_count, stats.relation_count, stats.dimensions) == (4, 2, 2)

    def test_not_ready(self):
        empty = TransEPredictor({}, {})
        assert not empty.is_ready()
        assert empty.stats().dimensions == 0
        with pytest.raises(ValidationError, match="not loaded"):
            empty.predict_tail("a", "r")

    def test_inconsistent_dimensions(self):
        with pytest.raises(DimensionMismatch):
            TransEPredictor({"a": [0.0, 0.0]}, {"r": [1.0, 0.0, 0.0]})


class TestLinkPrediction:
    def test_predict_tail(self, predictor):
        results = predictor.predict_tail("a", "r")
        assert [p.entity for p in results] == ["b", "c", "d"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(distance_to_score(math.sqrt(2)))

    def test_predict_tail_excludes_head(self, predictor):
        assert "a" not in [p.entity for p in predictor.predict_tail("a", "r")]

    def test_head_excluded_even_when_closest(self):
        identity = TransEPredictor(
            entity_embeddings={"a": [0.0, 0.0], "b": [1.0, 0.0], "c": [0.0, 2.0]},
            relation_embeddings={"same": [0.0, 0.0]},
        )
        # a + same == a, so a would otherwise score 1.0
        results = identity.predict_tail("a", "same")
        assert [p.entity for p in results] == ["b", "c"]
        assert "a" not in [p.entity for p in identity.predict_head("same", "a")]

    def test_top_k(self, predictor):
        assert len(predictor.predict_tail("a", "r", top_k=2)) == 2

    def test_predict_head(self, predictor):
        results = predictor.predict_head("r", "b")
        assert results[0].entity == "a"
        assert results[0].score == pytest.approx(1.0)
        assert "b" not in [p.entity for p in results]

    def test_predict_relation(self, predictor):
        results = predictor.predict_relation("a", "b")
        assert [p.relation for p in results] == ["r", "s"]
        assert results[0].score == pytest.approx(1.0)

    def test_scores_descending(self, predictor):
        scores = [p.score for p in predictor.predict_tail("c", "s")]
        assert scores == sorted(scores, reverse=True)

    def test_triplet_score(self, predictor):
        assert predictor.triplet_score("a", "r", "b") == pytest.approx(1.0)
        assert predictor.triplet_score("a", "r", "c") == pytest.approx(1 / (1 + math.sqrt(2)))

    def test_unknown_entity(self, predictor):
        with pytest.raises(MissingEmbedding, match="entity: X"):
            predictor.predict_tail("X", "r")

    def test_unknown_relation(self, predictor):
        with pytest.raises(MissingEmbedding, match="relation: knows"):
            predictor.triplet_score("a", "knows", "b")

    def test_entity_id_is_not_a_relation(self, predictor):
        with pytest.raises(MissingEmbedding):
            predictor.predict_tail("a", "b")


class TestSimilarity:
    def test_similar_entities(self, predictor):
        results = predictor.find_similar_entities("b")
        assert results[0].entity == "d"
        assert results[0].similarity == pytest.approx(1 / math.sqrt(2))
        assert "b" not in [s.entity for s in results]

    def test_zero_vector_similarity(self, predictor):
        results = {s.entity: s.similarity for s in predictor.find_similar_entities("b")}
        assert results["a"] == 0.0

    def test_similar_relations(self, predictor):
        results = predictor.find_similar_relations("r")
        assert [s.relation for s in results] == ["s"]
        assert results[0].similarity == pytest.approx(0.0)


class TestCompleteness:
    def test_perfect(self, predictor):
        metrics = predictor.evaluate_graph_completeness([Triplet(head="a", relation="r", tail="b")])
        assert metrics.mean_rank == 1.0
        assert metrics.hits_at_10 == 1.0
        assert metrics.mean_reciprocal_rank == 1.0
        assert metrics.triplet_count == 1

    def test_missing_candidate_rank(self, predictor):
        metrics = predictor.evaluate_graph_completeness(
            [Triplet(head="a", relation="r", tail="c")], candidate_limit=1,
        )
        # head ranks first, tail falls outside the single candidate -> rank 2
        assert metrics.mean_rank == pytest.approx(1.5)
        assert metrics.hits_at_10 == pytest.approx(1.0)
        assert metrics.mean_reciprocal_rank == pytest.approx(0.75)

    def test_bounds(self, predictor):
        metrics = predictor.evaluate_graph_completeness([
            Triplet(head="d", relation="s", tail="a"),
            Triplet(head="c", relation="r", tail="d"),
        ])
        candidate_count = len(predictor.available_entities()) - 1  # self excluded
        assert 1.0 <= metrics.mean_rank <= candidate_count + 1
        assert 0.0 <= metrics.hits_at_10 <= 1.0
        assert 0.0 < metrics.mean_reciprocal_rank <= 1.0

    def test_empty_rejected(self, predictor):
        with pytest.raises(ValueError):
            predictor.evaluate_graph_completeness([])


class TestFromRows:
    def test_parses_json_and_lists(self):
        p = TransEPredictor.from_rows(
            [("a", json.dumps([1.0, 0.0])), ("b", [0.0, 1.0])],
            [("r", "[0.5, 0.5]")],
        )
        assert p.available_entities() == ["a", "b"]
        assert p.is_ready()

    def test_skips_invalid_rows(self):
        p = TransEPredictor.from_rows(
            [("a", "[1.0, 0.0]"), ("bad", "{oops"), ("obj", {"x": 1}), ("none", None)],
            [("r", [1.0, 0.0])],
        )
        assert p.available_entities() == ["a"]

    def test_skips_non_numeric_and_nested_rows(self):
        p = TransEPredictor.from_rows(
            [
                ("a", [1.0, 0.0]),
                ("text", ["x", "y"]),
                ("nested", "[[1.0, 0.0], [0.0, 1.0]]"),
                ("holes", [1.0, None]),
            ],
            [("r", "[1.0, 0.0]"), ("s", '["north", "south"]')],
        )
        assert p.available_entities() == ["a"]
        assert p.available_relations() == ["r"]

    def test_first_relation_row_wins(self):
        p = TransEPredictor.from_rows(
            [("a", [0.0, 0.0]), ("b", [1.0, 0.0])],
            [("r", [1.0, 0.0]), ("r", [0.0, 1.0])],
        )
        assert p.triplet_score("a", "r", "b") == pytest.approx(1.0)
