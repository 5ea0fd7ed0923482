"""Tracking of the user tables map layers read from."""

from services.table_dependencies.catalog import LayerContext, TableCatalog
from services.table_dependencies.query_tables import DatabaseQueryTables, parse_query_tables_output
from services.table_dependencies.resolver import (
    Resolved,
    TableDependencyResolver,
    Unresolvable,
    qualify_table_name,
    unique_tables,
)

__all__ = [
    "DatabaseQueryTables",
    "LayerContext",
    "Resolved",
    "TableCatalog",
    "TableDependencyResolver",
    "Unresolvable",
    "parse_query_tables_output",
    "qualify_table_name",
    "unique_tables",
]
