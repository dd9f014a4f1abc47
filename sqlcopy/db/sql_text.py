"""Small helpers for working with raw SQL text."""

import re
from typing import List

_FROM_TABLE_RE = re.compile(r"\bFROM\s+([^\s,;]+)", re.IGNORECASE)
_TRAILING_CHARS = " \t\n\r;"


def stringify(sql: str) -> str:
    """Collapse all whitespace runs in ``sql`` into single spaces."""
    return " ".join(sql.split())


def trim_query(sql: str) -> str:
    """Strip trailing whitespace and semicolons."""
    return sql.rstrip(_TRAILING_CHARS)


def from_table_name(sql: str) -> str:
    """Return the first table named after ``FROM``, or an empty string."""
    match = _FROM_TABLE_RE.search(sql)
    return match.group(1) if match else ""


def split_statements(script: str) -> List[str]:
    """Split a ``;`` separated script into trimmed, non-empty statements."""
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]
