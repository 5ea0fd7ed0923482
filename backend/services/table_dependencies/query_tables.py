"""Extraction of the tables an SQL query reads from.

The parsing itself happens in the database: ``CDB_QueryTables(query)``
plans the query as the owning user and returns the relations it touches as
a Postgres text array literal, e.g. ``{public.parcels,alice.roads}``.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy import text

from core.config import get_query_tables_function
from db.session import user_database

logger = logging.getLogger(__name__)

_FUNCTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
# One element of a text array literal: double-quoted with backslash escapes, or bare.
_ARRAY_ELEMENT = re.compile(r'"((?:[^"\\]|\\.)*)"|([^,]*)')
_ESCAPE = re.compile(r"\\(.)")


def parse_query_tables_output(raw: Optional[str]) -> List[str]:
    """Split the helper's ``{a,b}`` output into unique, non-blank table names.

    Quoted elements are unescaped, so ``{"alice.\\"My Table\\""}`` yields
    ``alice."My Table"``.
    """
    if not raw:
        return []
    body = raw.strip()
    if body.startswith("{"):
        body = body[1:]
    if body.endswith("}"):
        body = body[:-1]

    names: List[str] = []
    pos = 0
    while pos <= len(body):
        match = _ARRAY_ELEMENT.match(body, pos)
        quoted, bare = match.group(1), match.group(2)
        name = _ESCAPE.sub(r"\1", quoted) if quoted is not None else bare.strip()
        if name and name not in names:
            names.append(name)
        # Skip the separating comma.
        pos = match.end() + 1
    return names


class DatabaseQueryTables:
    """Runs the table-extraction function on the user's database connection."""

    def __init__(self, function_name: Optional[str] = None):
        self.function_name = function_name or get_query_tables_function()
        if not _FUNCTION_NAME.match(self.function_name):
            raise ValueError(f"Invalid query tables function name: {self.function_name!r}")

    async def affected_table_names(self, query: str, user) -> List[str]:
        async with user_database(user) as conn:
            result = await conn.execute(
                text(f"SELECT {self.function_name}(:query)"),
                {"query": query},
            )
            raw = result.scalar()
        names = parse_query_tables_output(raw)
        logger.debug("Query for user %s reads %s", getattr(user, "username", None), names)
        return names
