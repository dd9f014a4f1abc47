"""Tests for SQL value formatting."""

import datetime
import uuid
from decimal import Decimal

import pytest

from sqlcopy.db.formatter import (
    STATEMENT_PREPARED,
    STATEMENT_RAW,
    build_placeholders,
    format_row,
    format_scalar,
    insert_command,
    insert_statement_for,
    wrap_columns,
)


class TestFormatScalar:
    """Test rendering of single values."""

    def test_quote_and_backslash_are_doubled(self):
        assert format_scalar("test\\test'test") == "'test\\\\test''test'"

    def test_bytes_are_quoted_like_text(self):
        assert format_scalar(b"it's") == "'it''s'"
        assert format_scalar(bytearray(b"a\\b")) == "'a\\\\b'"
        assert format_scalar(memoryview(b"xyz")) == "'xyz'"

    def test_invalid_utf8_bytes_survive(self):
        rendered = format_scalar(b"\xff")
        assert rendered.encode("utf-8", "surrogateescape") == b"'\xff'"

    def test_none_is_null(self):
        assert format_scalar(None) == "NULL"

    @pytest.mark.parametrize(
        "value, expected",
        [(0, "0"), (-42, "-42"), (2**70, str(2**70)), (True, "1"), (False, "0")],
    )
    def test_integers(self, value, expected):
        assert format_scalar(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1.5, "1.5"),
            (-0.25, "-0.25"),
            (0.1, "0.1"),
            (1.0, "1"),
            (100.0, "100"),
            (-3.0, "-3"),
            (1e20, "100000000000000000000"),
        ],
    )
    def test_floats(self, value, expected):
        assert format_scalar(value) == expected

    def test_small_float_has_no_exponent(self):
        rendered = format_scalar(1.5e-7)
        assert "e" not in rendered.lower()
        assert float(rendered) == 1.5e-7

    def test_other_types_use_quoted_text(self):
        assert format_scalar(Decimal("12.50")) == "'12.50'"
        assert (
            format_scalar(datetime.datetime(2025, 1, 2, 3, 4, 5))
            == "'2025-01-02 03:04:05'"
        )
        assert format_scalar(datetime.date(2025, 1, 2)) == "'2025-01-02'"
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert format_scalar(value) == f"'{value}'"


class TestRowsAndPlaceholders:
    """Test whole-row rendering helpers."""

    def test_format_row(self):
        assert format_row([1, "a'b", None]) == "1, 'a''b', NULL"

    def test_build_placeholders(self):
        assert build_placeholders(1) == "?"
        assert build_placeholders(3) == "?, ?, ?"

    @pytest.mark.parametrize("count", [0, -1])
    def test_build_placeholders_rejects_non_positive(self, count):
        with pytest.raises(ValueError):
            build_placeholders(count)

    def test_insert_statement_for_prepared(self):
        assert insert_statement_for(STATEMENT_PREPARED, [1, "x"]) == "?, ?"

    def test_insert_statement_for_raw(self):
        assert insert_statement_for(STATEMENT_RAW, [1, "x"]) == "1, 'x'"

    def test_unknown_statement_type_renders_literals(self):
        assert insert_statement_for("custom", [7]) == "7"


class TestInsertCommand:
    """Test statement heads and identifier quoting."""

    def test_insert_command(self):
        assert (
            insert_command("INSERT IGNORE INTO", "t", ["`a`", "`b`"])
            == "INSERT IGNORE INTO t (`a`, `b`) VALUES "
        )

    def test_wrap_columns_backticks(self):
        assert wrap_columns(["id", "na`me"]) == ["`id`", "`na``me`"]

    def test_wrap_columns_double_quotes(self):
        assert wrap_columns(["id"], '"') == ['"id"']

    def test_wrap_columns_without_quote(self):
        assert wrap_columns(["id"], "") == ["id"]
