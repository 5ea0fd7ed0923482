"""Resolution of the tables a layer reads from.

A layer reads either from its own ``query``/``table_name`` options or, when
``options.source`` names an analysis node, from every node upstream of that
node. Dependency tracking is best effort: anything that cannot be resolved
counts as no dependency, and ``resolve`` never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from db.models.user_table import UserTable
from models.layer_options import LayerOptions
from services.analysis_graph import AnalysisGraph, load_analysis_graph
from services.table_dependencies.catalog import LayerContext, TableCatalog
from services.table_dependencies.query_tables import DatabaseQueryTables
from utility.string_methods import is_blank, quote_identifier

logger = logging.getLogger(__name__)

GraphLoader = Callable[[Any], Awaitable[AnalysisGraph]]


@dataclass(frozen=True)
class Resolved:
    tables: Tuple[UserTable, ...] = ()


@dataclass(frozen=True)
class Unresolvable:
    reason: str
    error: Optional[BaseException] = None


TableResolution = Union[Resolved, Unresolvable]


def unique_tables(groups: Iterable[Iterable[Optional[UserTable]]]) -> List[UserTable]:
    """Flatten table groups, dropping Nones and repeats, keeping first-seen order."""
    seen = set()
    tables: List[UserTable] = []
    for group in groups:
        for table in group:
            if table is None or table.id in seen:
                continue
            seen.add(table.id)
            tables.append(table)
    return tables


def qualify_table_name(table_name: Optional[str], user_name: Optional[str]) -> Optional[str]:
    """Prefix ``table_name`` with the quoted ``user_name`` schema unless it has one."""
    if is_blank(table_name):
        return None
    if is_blank(user_name) or "." in table_name:
        return table_name
    return f"{quote_identifier(user_name)}.{table_name}"


class TableDependencyResolver:
    """Computes the deduplicated set of user tables a layer depends on."""

    def __init__(
        self,
        catalog: TableCatalog,
        query_tables: DatabaseQueryTables,
        graph_loader: GraphLoader,
    ):
        self.catalog = catalog
        self.query_tables = query_tables
        self.graph_loader = graph_loader

    @classmethod
    def for_session(cls, session: AsyncSession) -> "TableDependencyResolver":
        return cls(
            TableCatalog(session),
            DatabaseQueryTables(),
            partial(load_analysis_graph, session),
        )

    async def resolve(self, layer) -> List[UserTable]:
        """Return the tables ``layer`` reads from; ``[]`` when unknown."""
        if not layer.options:
            return []
        options = LayerOptions.parse(layer.options)
        context = await self.catalog.layer_context(layer)
        if context is None or context.user is None:
            return []

        if options.source:
            return await self._resolve_from_graph(layer, context, options.source)

        by_query = await self.tables_from_query(options.query, context.user, layer=layer)
        by_name = await self.tables_from_names(
            [qualify_table_name(options.table_name, options.user_name)],
            context.user,
            layer=layer,
        )
        return unique_tables([by_query, by_name])

    async def _resolve_from_graph(
        self, layer, context: LayerContext, node_id: str
    ) -> List[UserTable]:
        if context.visualization_id is None:
            return []
        graph = await self.graph_loader(context.visualization_id)
        node = graph.find_node(node_id)
        if node is None:
            # Layer config may point at a node that was since removed.
            logger.debug(
                "Analysis node %s not found in visualization %s (layer=%s)",
                node_id,
                context.visualization_id,
                layer.id,
            )
            return []

        groups: List[List[UserTable]] = []
        for source_node in graph.source_descendants(node):
            groups.append(await self.tables_from_query(source_node.query, context.user, layer=layer))
            if source_node.table_name:
                groups.append(
                    await self.tables_from_names([source_node.table_name], context.user, layer=layer)
                )
        return unique_tables(groups)

    async def tables_from_query(self, query: Optional[str], user, layer=None) -> List[UserTable]:
        return self._collapse(await self._resolve_query(query, user), user, layer)

    async def tables_from_names(
        self, names: Iterable[Optional[str]], user, layer=None
    ) -> List[UserTable]:
        return self._collapse(await self._resolve_names(names, user), user, layer)

    async def _resolve_query(self, query: Optional[str], user) -> TableResolution:
        if is_blank(query):
            return Resolved()
        try:
            names = await self.query_tables.affected_table_names(query, user)
            tables = await self.catalog.lookup_by_names(names, user) if names else []
        except Exception as exc:
            # Broken or stale SQL (dropped tables, invalid operators) lands here.
            return Unresolvable("Could not retrieve tables from query", exc)
        return Resolved(tuple(tables))

    async def _resolve_names(self, names: Iterable[Optional[str]], user) -> TableResolution:
        wanted = [name for name in names if not is_blank(name)]
        if not wanted:
            return Resolved()
        try:
            tables = await self.catalog.lookup_by_names(wanted, user)
        except Exception as exc:
            return Unresolvable("Could not retrieve tables from names", exc)
        return Resolved(tuple(tables))

    def _collapse(self, resolution: TableResolution, user, layer) -> List[UserTable]:
        if isinstance(resolution, Unresolvable):
            logger.debug(
                "%s (user=%s, layer=%s): %s",
                resolution.reason,
                getattr(user, "username", None),
                getattr(layer, "id", None),
                resolution.error,
                exc_info=resolution.error,
            )
            return []
        return list(resolution.tables)

    # Derived queries

    async def affected_tables_readable_by(self, layer, user) -> List[UserTable]:
        return [table for table in await self.resolve(layer) if table.readable_by(user)]

    async def data_readable_by(self, layer, user) -> bool:
        return all(table.readable_by(user) for table in await self.resolve(layer))

    async def register_table_dependencies(self, layer) -> List[UserTable]:
        """Persist the layer's dependency set; non-data layers get an empty one."""
        tables = await self.resolve(layer) if layer.is_data_layer else []
        await self.catalog.replace_layer_tables(layer, tables)
        return tables
