# src/graph/networkx_source.py - v1
"""In-memory graph source backed by one networkx MultiDiGraph per scope.

Node and edge attributes mirror the GraphNode / GraphEdge fields; final
vectors are stored under the ``transe_embedding`` attribute.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

import networkx as nx

from kgembed.core.models import GraphEdge, GraphNode
from kgembed.graph.base_graph_source import BaseGraphSource

logger = logging.getLogger(__name__)

EMBEDDING_ATTR = "transe_embedding"


class NetworkxGraphSource(BaseGraphSource):
    """Graph source over in-memory networkx graphs."""

    def __init__(self) -> None:
        self._graphs: dict[str, nx.MultiDiGraph] = {}

    def graph(self, scope_id: str) -> nx.MultiDiGraph:
        """The (possibly empty) graph of a scope."""
        return self._graphs.setdefault(scope_id, nx.MultiDiGraph(scope_id=scope_id))

    # --- Loading ---

    def add_node(self, scope_id: str, node: GraphNode) -> None:
        self.graph(scope_id).add_node(node.id, **node.model_dump(exclude={"id"}))

    def add_edge(self, scope_id: str, edge: GraphEdge) -> None:
        """Add an edge keyed by its id.

        Raises:
            ValueError: If an endpoint node has not been added to the scope.
        """
        g = self.graph(scope_id)
        for endpoint in (edge.from_id, edge.to_id):
            if endpoint not in g:
                raise ValueError(f"Edge {edge.id} references unknown node {endpoint}")
        g.add_edge(
            edge.from_id, edge.to_id, key=edge.id,
            **edge.model_dump(exclude={"from_id", "to_id"}),
        )

    def load(
        self, scope_id: str, nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]
    ) -> None:
        for node in nodes:
            self.add_node(scope_id, node)
        for edge in edges:
            self.add_edge(scope_id, edge)

    # --- Reads ---

    async def fetch_nodes(self, scope_id: str) -> list[GraphNode]:
        return [
            GraphNode(id=node_id, **_fields(data, GraphNode))
            for node_id, data in self.graph(scope_id).nodes(data=True)
            if data.get("deleted_at") is None
        ]

    async def fetch_edges(self, scope_id: str) -> list[GraphEdge]:
        return [
            GraphEdge(from_id=u, to_id=v, **_fields(data, GraphEdge))
            for u, v, data in self._live_edges(scope_id)
        ]

    async def load_entity_embeddings(self, scope_id: str) -> list[tuple[str, Any]]:
        return [
            (node_id, data[EMBEDDING_ATTR])
            for node_id, data in self.graph(scope_id).nodes(data=True)
            if data.get("deleted_at") is None and data.get(EMBEDDING_ATTR) is not None
        ]

    async def load_relation_embeddings(self, scope_id: str) -> list[tuple[str, Any]]:
        return [
            (data["type"], data[EMBEDDING_ATTR])
            for _, _, data in self._live_edges(scope_id)
            if data.get(EMBEDDING_ATTR) is not None
        ]

    # --- Writes ---

    async def persist_entity_embedding(
        self, scope_id: str, node_id: str, vector: Sequence[float]
    ) -> None:
        g = self.graph(scope_id)
        if node_id not in g:
            raise LookupError(f"Node {node_id} not found in scope {scope_id}")
        g.nodes[node_id][EMBEDDING_ATTR] = [float(x) for x in vector]

    async def persist_relation_embedding(
        self, scope_id: str, relation_type: str, vector: Sequence[float]
    ) -> None:
        values = [float(x) for x in vector]
        updated = 0
        for _, _, data in self._live_edges(scope_id):
            if data["type"] == relation_type:
                data[EMBEDDING_ATTR] = list(values)
                updated += 1
        if updated == 0:
            raise LookupError(f"No edge of type {relation_type} in scope {scope_id}")
        logger.debug("Relation %s vector written to %d edges", relation_type, updated)

    def _live_edges(self, scope_id: str) -> list[tuple[str, str, dict]]:
        return [
            (u, v, data)
            for u, v, data in self.graph(scope_id).edges(data=True)
            if data.get("deleted_at") is None
        ]


def _fields(data: dict, model: type) -> dict:
    """Keep only the attributes that belong to the model."""
    return {k: v for k, v in data.items() if k in model.model_fields}
