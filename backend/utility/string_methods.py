import re
from typing import Optional, Tuple

_PLAIN_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty, or whitespace-only strings."""
    return value is None or not str(value).strip()


def quote_identifier(name: str) -> str:
    """Double-quote an SQL identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def safe_table_name_quoting(table_name: str) -> str:
    """Quote a table name only when it is not a plain lowercase identifier."""
    if _PLAIN_IDENTIFIER.match(table_name):
        return table_name
    return quote_identifier(table_name)


def strip_identifier_quotes(name: str) -> str:
    name = name.strip()
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        return name[1:-1].replace('""', '"')
    return name


def split_qualified_name(name: str) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` into ``(schema, table)``, unquoting both parts.

    The split happens on the first dot outside double quotes, so
    ``"my.schema".table`` yields ``("my.schema", "table")``. Names without
    a schema return ``(None, table)``.
    """
    in_quotes = False
    for index, char in enumerate(name):
        if char == '"':
            in_quotes = not in_quotes
        elif char == "." and not in_quotes:
            schema = strip_identifier_quotes(name[:index])
            table = strip_identifier_quotes(name[index + 1 :])
            return (schema or None), table
    return None, strip_identifier_quotes(name)
