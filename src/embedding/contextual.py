# src/embedding/contextual.py - v1
"""Contextual augmentation of trained vectors before they are persisted.

Output layout: [base (base_dimensions) ++ context (context_dimensions)].
The base part is the trained vector truncated or zero-padded; the context
part holds deterministic structural features padded with zeros. The total
length is a storage contract with the persistence layer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from kgembed.core.vectors import Vector

DEFAULT_BASE_DIMENSIONS = 45
DEFAULT_CONTEXT_DIMENSIONS = 5

# Property payloads of this many JSON characters or more map to 1.0.
_PROPERTIES_SIZE_CAP = 1000


@dataclass(frozen=True)
class StructuralContext:
    """Structural metadata of one entity (label) or relation (type)."""

    label: str | None = None
    scope_id: str | None = None
    properties: dict[str, Any] | None = None


def _char_sum_feature(text: str) -> float:
    """Sum of code points modulo 100, scaled to [0, 1)."""
    return (sum(ord(ch) for ch in text) % 100) / 100


def encode_context(context: StructuralContext) -> list[float]:
    """Derive the three context features: label hash, scope hash, payload size."""
    features = [
        _char_sum_feature(context.label) if context.label else 0.0,
        _char_sum_feature(context.scope_id) if context.scope_id else 0.0,
    ]
    if context.properties is not None:
        payload = json.dumps(
            context.properties, separators=(",", ":"), ensure_ascii=False, default=str,
        )
        features.append(min(len(payload) / _PROPERTIES_SIZE_CAP, 1.0))
    else:
        features.append(0.0)
    return features


def _fit_length(values: Sequence[float] | np.ndarray, length: int) -> np.ndarray:
    """Truncate or zero-pad to exactly length entries."""
    out = np.zeros(length, dtype=np.float64)
    head = np.asarray(values, dtype=np.float64)[:length]
    out[: len(head)] = head
    return out


class ContextualAugmenter:
    """Blend a trained base vector with its structural context features."""

    def __init__(
        self,
        base_dimensions: int = DEFAULT_BASE_DIMENSIONS,
        context_dimensions: int = DEFAULT_CONTEXT_DIMENSIONS,
    ) -> None:
        if base_dimensions < 1 or context_dimensions < 0:
            raise ValueError("base_dimensions must be >= 1 and context_dimensions >= 0")
        self._base_dimensions = base_dimensions
        self._context_dimensions = context_dimensions

    @property
    def total_dimensions(self) -> int:
        return self._base_dimensions + self._context_dimensions

    def augment(self, base: Vector | Sequence[float], context: StructuralContext) -> Vector:
        """Return the fixed-length persisted vector for one entity or relation."""
        adjusted_base = _fit_length(base, self._base_dimensions)
        context_part = _fit_length(encode_context(context), self._context_dimensions)
        return np.concatenate([adjusted_base, context_part])
