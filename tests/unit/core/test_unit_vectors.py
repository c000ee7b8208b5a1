# tests/unit/core/test_unit_vectors.py - v1
"""Tests for core/vectors.py - dimension-checked vector algebra."""

from __future__ import annotations

import math

import numpy as np
import pytest

from kgembed.core.errors import DimensionMismatch, ValidationError
from kgembed.core.vectors import (
    add,
    as_vector,
    cosine_similarity,
    euclidean_distance,
    l2_norm,
    normalize_in_place,
    scale,
    subtract,
    xavier_uniform,
)


class TestArithmetic:
    def test_add(self):
        assert add(as_vector([1, 2]), as_vector([3, 4])).tolist() == [4.0, 6.0]

    def test_subtract(self):
        assert subtract(as_vector([1, 2]), as_vector([3, 5])).tolist() == [-2.0, -3.0]

    def test_scale(self):
        assert scale(as_vector([1, -2]), 0.5).tolist() == [0.5, -1.0]

    def test_length_mismatch_rejected(self):
        with pytest.raises(DimensionMismatch, match="2 != 3"):
            add(as_vector([1, 2]), as_vector([1, 2, 3]))

    def test_mismatch_is_validation_error(self):
        with pytest.raises(ValidationError):
            euclidean_distance(as_vector([1.0]), as_vector([1.0, 2.0]))

    def test_as_vector_copies(self):
        source = np.array([1.0, 2.0])
        vector = as_vector(source)
        vector[0] = 9.0
        assert source[0] == 1.0

    def test_as_vector_rejects_matrix(self):
        with pytest.raises(ValueError, match="1D"):
            as_vector([[1.0, 2.0], [3.0, 4.0]])


class TestNorms:
    def test_l2_norm(self):
        assert l2_norm(as_vector([3, 4])) == pytest.approx(5.0)

    def test_euclidean_distance(self):
        assert euclidean_distance(as_vector([0, 0]), as_vector([3, 4])) == pytest.approx(5.0)

    def test_normalize_in_place(self):
        v = as_vector([3, 4])
        normalize_in_place(v)
        assert l2_norm(v) == pytest.approx(1.0)
        assert v.tolist() == pytest.approx([0.6, 0.8])

    def test_normalize_zero_vector_unchanged(self):
        v = as_vector([0.0, 0.0, 0.0])
        normalize_in_place(v)
        assert v.tolist() == [0.0, 0.0, 0.0]
        assert not np.isnan(v).any()


class TestCosine:
    def test_identical(self):
        assert cosine_similarity(as_vector([1, 2]), as_vector([2, 4])) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity(as_vector([1, 0]), as_vector([0, 1])) == pytest.approx(0.0)

    def test_zero_vector_returns_zero(self):
        assert cosine_similarity(as_vector([0, 0]), as_vector([1, 1])) == 0.0


class TestXavier:
    def test_bounds(self):
        rng = np.random.default_rng(0)
        v = xavier_uniform(45, rng)
        bound = math.sqrt(6 / 45)
        assert len(v) == 45
        assert np.all(np.abs(v) <= bound)

    def test_seeded_reproducible(self):
        a = xavier_uniform(10, np.random.default_rng(3))
        b = xavier_uniform(10, np.random.default_rng(3))
        assert np.array_equal(a, b)
