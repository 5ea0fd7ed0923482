"""Per-visualization analysis graphs.

An analysis graph is a set of nodes connected by "source" edges: a node's
sources are the nodes whose output it consumes. Layers reference a node by
its natural id, and the tables behind such a layer are the tables behind
every node upstream of it.

Graphs are authored by the editor and stored as rows, so nothing at this
level guarantees they are acyclic. Walks are breadth-first over a networkx
digraph, which visits each node once, and stop after a configurable number
of nodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import networkx as nx
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_analysis_graph_max_nodes
from db.models.analysis_node import AnalysisNodeRecord, AnalysisNodeSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisNode:
    """A node of an analysis graph, detached from the database."""

    natural_id: str
    type: str = "source"
    params: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    source_ids: Tuple[str, ...] = ()

    @property
    def query(self) -> Optional[str]:
        return self.params.get("query")

    @property
    def table_name(self) -> Optional[str]:
        return self.options.get("table_name")


class AnalysisGraph:
    """In-memory analysis graph of a single visualization."""

    def __init__(
        self,
        visualization_id: Any,
        nodes: Iterable[AnalysisNode] = (),
        max_nodes: Optional[int] = None,
    ):
        self.visualization_id = visualization_id
        self.max_nodes = max_nodes or get_analysis_graph_max_nodes()
        # Edges point from a node to its sources, so "upstream" is reachability.
        self._graph = nx.DiGraph()
        for node in nodes:
            if node.natural_id not in self._graph:
                self._graph.add_node(node.natural_id, info=node)
        for natural_id, data in list(self._graph.nodes(data=True)):
            for source_id in data["info"].source_ids:
                if source_id not in self._graph:
                    logger.debug(
                        "Analysis node %s references missing source %s",
                        natural_id,
                        source_id,
                    )
                    continue
                self._graph.add_edge(natural_id, source_id)

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, natural_id: str) -> bool:
        return natural_id in self._graph

    def find_node(self, natural_id: str) -> Optional[AnalysisNode]:
        if natural_id not in self._graph:
            return None
        return self._graph.nodes[natural_id]["info"]

    def source_descendants(self, node: AnalysisNode) -> List[AnalysisNode]:
        """Return ``node`` and every node upstream of it, each exactly once.

        Breadth-first from ``node``. Edges to ids with no node are skipped.
        At most ``max_nodes`` nodes are returned.
        """
        if node.natural_id not in self._graph:
            return [node]
        # One edge past the ceiling tells whether the walk was cut short.
        edges = list(islice(nx.bfs_edges(self._graph, node.natural_id), self.max_nodes))
        reached = [node.natural_id] + [target for _, target in edges]
        if len(reached) > self.max_nodes:
            logger.warning(
                "Analysis graph walk from %s in visualization %s stopped after %s nodes",
                node.natural_id,
                self.visualization_id,
                self.max_nodes,
            )
            reached = reached[: self.max_nodes]
        return [node] + [self._graph.nodes[natural_id]["info"] for natural_id in reached[1:]]


async def load_analysis_graph(session: AsyncSession, visualization_id: Any) -> AnalysisGraph:
    """Load every node and source edge of a visualization."""
    result = await session.execute(
        select(AnalysisNodeRecord).where(AnalysisNodeRecord.visualization_id == visualization_id)
    )
    records = result.scalars().all()
    natural_ids: Dict[UUID, str] = {record.id: record.natural_id for record in records}

    sources: Dict[UUID, List[str]] = {}
    if natural_ids:
        edge_result = await session.execute(
            select(AnalysisNodeSource.node_id, AnalysisNodeSource.source_node_id).where(
                AnalysisNodeSource.node_id.in_(natural_ids.keys())
            )
        )
        for node_id, source_node_id in edge_result.all():
            source_natural_id = natural_ids.get(source_node_id)
            if source_natural_id is not None:
                sources.setdefault(node_id, []).append(source_natural_id)

    nodes = [
        AnalysisNode(
            natural_id=record.natural_id,
            type=record.type,
            params=dict(record.params or {}),
            options=dict(record.options or {}),
            source_ids=tuple(sorted(sources.get(record.id, []))),
        )
        for record in records
    ]
    return AnalysisGraph(visualization_id, nodes)


def _is_node_definition(value: Any) -> bool:
    return isinstance(value, dict) and "id" in value and "type" in value


def flatten_definition(definition: Dict[str, Any]) -> List[AnalysisNode]:
    """Flatten a nested analysis definition into nodes.

    Any parameter whose value is itself a node definition (``{"id", "type",
    ...}``) is a source of the enclosing node; it is replaced by its id in
    the stored params. A node id repeated across the tree keeps its first
    definition.

    >>> nodes = flatten_definition(
    ...     {"id": "b0", "type": "buffer", "params": {"source": {"id": "a0", "type": "source"}}}
    ... )
    >>> [(n.natural_id, n.source_ids) for n in nodes]
    [('b0', ('a0',)), ('a0', ())]
    """
    if not _is_node_definition(definition):
        raise ValueError("Analysis definition must be an object with 'id' and 'type'")

    nodes: Dict[str, AnalysisNode] = {}
    stack = [definition]
    while stack:
        current = stack.pop()
        natural_id = str(current["id"])
        if natural_id in nodes:
            continue
        params: Dict[str, Any] = {}
        source_ids: List[str] = []
        children: List[Dict[str, Any]] = []
        for key, value in (current.get("params") or {}).items():
            if _is_node_definition(value):
                if str(value["id"]) not in source_ids:
                    source_ids.append(str(value["id"]))
                params[key] = str(value["id"])
                children.append(value)
            else:
                params[key] = value
        nodes[natural_id] = AnalysisNode(
            natural_id=natural_id,
            type=str(current["type"]),
            params=params,
            options=dict(current.get("options") or {}),
            source_ids=tuple(source_ids),
        )
        stack.extend(reversed(children))
    return list(nodes.values())


async def replace_analysis_graph(
    session: AsyncSession,
    visualization_id: Any,
    definitions: Iterable[Dict[str, Any]],
) -> List[AnalysisNode]:
    """Replace a visualization's stored graph with the given definitions.

    The caller owns the transaction; nothing is committed here.
    """
    nodes: Dict[str, AnalysisNode] = {}
    for definition in definitions:
        for node in flatten_definition(definition):
            nodes.setdefault(node.natural_id, node)

    await session.execute(
        delete(AnalysisNodeRecord).where(AnalysisNodeRecord.visualization_id == visualization_id)
    )

    records: Dict[str, AnalysisNodeRecord] = {}
    for node in nodes.values():
        record = AnalysisNodeRecord(
            visualization_id=visualization_id,
            natural_id=node.natural_id,
            type=node.type,
            params=node.params,
            options=node.options,
        )
        session.add(record)
        records[node.natural_id] = record
    await session.flush()

    for node in nodes.values():
        for source_id in node.source_ids:
            source = records.get(source_id)
            if source is None:
                continue
            session.add(
                AnalysisNodeSource(node_id=records[node.natural_id].id, source_node_id=source.id)
            )
    await session.flush()
    return list(nodes.values())
