# src/core/vectors.py - v1
"""Dimension-checked vector algebra over dense numpy vectors.

Every binary operation checks operand lengths explicitly and raises
DimensionMismatch instead of broadcasting or truncating.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from kgembed.core.errors import DimensionMismatch

Vector = np.ndarray

# Norms below this are treated as zero by normalize_in_place.
_ZERO_NORM = 1e-12


def as_vector(values: Sequence[float] | np.ndarray) -> Vector:
    """Convert a sequence of numbers to a 1-D float64 vector (copying)."""
    vector = np.array(values, dtype=np.float64)
    if vector.ndim != 1:
        raise ValueError(f"Expected 1D vector, got {vector.ndim}D")
    return vector


def check_same_length(a: Vector, b: Vector, context: str = "") -> None:
    """Raise DimensionMismatch if the two vectors differ in length."""
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b), context)


def add(a: Vector, b: Vector) -> Vector:
    check_same_length(a, b, "add")
    return a + b


def subtract(a: Vector, b: Vector) -> Vector:
    check_same_length(a, b, "subtract")
    return a - b


def scale(vector: Vector, factor: float) -> Vector:
    return vector * factor


def l2_norm(vector: Vector) -> float:
    return float(math.sqrt(float(np.dot(vector, vector))))


def euclidean_distance(a: Vector, b: Vector) -> float:
    check_same_length(a, b, "euclidean_distance")
    return l2_norm(a - b)


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Cosine of the angle between a and b; 0.0 when either is the zero vector."""
    check_same_length(a, b, "cosine_similarity")
    denominator = l2_norm(a) * l2_norm(b)
    if denominator <= 0:
        return 0.0
    return float(np.dot(a, b)) / denominator


def normalize_in_place(vector: Vector) -> None:
    """Scale vector to unit L2 norm in place. The zero vector is left unchanged."""
    norm = l2_norm(vector)
    if norm > _ZERO_NORM:
        vector /= norm


def xavier_uniform(dimensions: int, rng: np.random.Generator) -> Vector:
    """Draw each coordinate uniformly from [-sqrt(6/D), sqrt(6/D)]."""
    bound = math.sqrt(6.0 / dimensions)
    return rng.uniform(-bound, bound, size=dimensions).astype(np.float64)
