# src/graph/base_graph_source.py - v1
"""Abstract graph source: scoped graph reads and embedding write-back."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from kgembed.core.models import GraphEdge, GraphNode


class BaseGraphSource(ABC):
    """Unified interface for the external graph store.

    Reads never return soft-deleted rows.
    """

    # --- Training input ---

    @abstractmethod
    async def fetch_nodes(self, scope_id: str) -> list[GraphNode]:
        """All live nodes of a graph/topic scope."""

    @abstractmethod
    async def fetch_edges(self, scope_id: str) -> list[GraphEdge]:
        """All live edges of a graph/topic scope."""

    # --- Final embeddings ---

    @abstractmethod
    async def persist_entity_embedding(
        self, scope_id: str, node_id: str, vector: Sequence[float]
    ) -> None:
        """Write the final vector onto one node."""

    @abstractmethod
    async def persist_relation_embedding(
        self, scope_id: str, relation_type: str, vector: Sequence[float]
    ) -> None:
        """Write the final vector onto every edge of a relation type."""

    @abstractmethod
    async def load_entity_embeddings(self, scope_id: str) -> list[tuple[str, Any]]:
        """(node id, stored vector) rows for nodes that have a vector."""

    @abstractmethod
    async def load_relation_embeddings(self, scope_id: str) -> list[tuple[str, Any]]:
        """(relation type, stored vector) rows, one per edge that has a vector."""
