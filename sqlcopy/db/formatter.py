"""Render scanned values as SQL text for multi-row INSERT statements."""

from decimal import Decimal
from typing import Any, List, Sequence

STATEMENT_PREPARED = "prepared"
STATEMENT_RAW = "raw"

NULL = "NULL"
PLACEHOLDER = "?"


def _quote_text(text: str) -> str:
    return "'" + text.replace("'", "''").replace("\\", "\\\\") + "'"


def _format_float(value: float) -> str:
    text = repr(value)
    if "e" in text or "E" in text:
        # Positional notation with the same (shortest) digits
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_scalar(value: Any) -> str:
    """Render a single scanned value as a SQL literal.

    Text and byte sequences are single-quoted with embedded quotes and
    backslashes doubled. Integers and floats are written bare, ``None`` becomes
    ``NULL`` and every other type falls back to its quoted ``str()`` form.
    """
    if value is None:
        return NULL
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _quote_text(bytes(value).decode("utf-8", "surrogateescape"))
    if isinstance(value, str):
        return _quote_text(value)
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return _quote_text(str(value))


def format_row(values: Sequence[Any]) -> str:
    """Render a row as comma separated SQL literals."""
    return ", ".join(format_scalar(value) for value in values)


def build_placeholders(count: int) -> str:
    """Return ``count`` question mark placeholders separated by commas.

    Raises:
        ValueError: If ``count`` is smaller than one
    """
    if count < 1:
        raise ValueError(f"placeholder count must be at least 1, got {count}")
    return ", ".join([PLACEHOLDER] * count)


def insert_statement_for(statement_type: str, values: Sequence[Any]) -> str:
    """Return the VALUES tuple body for one row in the given statement mode."""
    if statement_type == STATEMENT_PREPARED:
        return build_placeholders(len(values))
    return format_row(values)


def insert_command(command: str, table: str, columns: Sequence[str]) -> str:
    """Return the statement head, e.g. ``INSERT INTO t (`a`, `b`) VALUES ``."""
    return f"{command} {table} ({', '.join(columns)}) VALUES "


def wrap_columns(columns: Sequence[str], quote: str = "`") -> List[str]:
    """Quote column names with ``quote``, doubling embedded quote characters."""
    if not quote:
        return list(columns)
    return [f"{quote}{col.replace(quote, quote * 2)}{quote}" for col in columns]
