"""Pytest configuration and in-memory fakes for sqlcopy tests."""

import re
from typing import Any, List, Optional, Sequence, Tuple

import pytest
from sqlalchemy import create_engine, text

from sqlcopy.exceptions import SinkWriteError
from sqlcopy.processing.sinks import Sink

_LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)
_OFFSET_RE = re.compile(r"\bOFFSET\s+(\d+)", re.IGNORECASE)
_FILTER_RE = re.compile(r"\bid\s*(>=|>|<)\s*(-?\d+)")


class FakeCursor:
    """Cursor over a fixed list of rows."""

    def __init__(self, columns: List[str], rows: List[Tuple[Any, ...]]):
        self._columns = columns
        self._rows = list(rows)
        self._row = None
        self.closed = False

    def columns(self) -> List[str]:
        return list(self._columns)

    def advance(self) -> bool:
        if not self._rows:
            self._row = None
            return False
        self._row = self._rows.pop(0)
        return True

    def scan(self) -> Tuple[Any, ...]:
        return self._row

    def close(self) -> None:
        self.closed = True


class FakeDatabase:
    """Source database answering page queries from an in-memory table.

    Understands just enough SQL for pagination tests: ``id > N``, ``id >= N``
    and ``id < N`` filters on the first column, then ``OFFSET`` and ``LIMIT``.
    """

    def __init__(self, columns: Sequence[str], rows: Sequence[Tuple[Any, ...]]):
        self.columns = list(columns)
        self.rows = [tuple(row) for row in rows]
        self.queries: List[str] = []
        self.open_count = 0
        self.close_count = 0
        self._open = False

    def open(self) -> None:
        if not self._open:
            self._open = True
            self.open_count += 1

    def close(self) -> None:
        if self._open:
            self._open = False
            self.close_count += 1

    def is_open(self) -> bool:
        return self._open

    def query(self, sql: str, args: Optional[Sequence[Any]] = None) -> FakeCursor:
        assert self._open, "query on a closed database"
        self.queries.append(sql)
        rows = self.rows
        for op, bound in _FILTER_RE.findall(sql):
            bound = int(bound)
            if op == ">":
                rows = [row for row in rows if row[0] > bound]
            elif op == ">=":
                rows = [row for row in rows if row[0] >= bound]
            else:
                rows = [row for row in rows if row[0] < bound]
        offset = _OFFSET_RE.search(sql)
        if offset:
            rows = rows[int(offset.group(1)):]
        limit = _LIMIT_RE.search(sql)
        if limit:
            rows = rows[: int(limit.group(1))]
        return FakeCursor(self.columns, rows)


class MemorySink(Sink):
    """Sink keeping every written statement in memory."""

    def __init__(self, fail_on_write: Optional[int] = None):
        self.writes: List[Tuple[List[str], List[Any]]] = []
        self.fail_on_write = fail_on_write

    def write(self, fragments: Sequence[str], params: Sequence[Any]) -> None:
        if self.fail_on_write is not None and len(self.writes) + 1 == self.fail_on_write:
            raise SinkWriteError("memory sink refused the batch")
        self.writes.append((list(fragments), list(params)))

    def describe(self) -> str:
        return "Rows processed to memory"

    @property
    def statements(self) -> List[str]:
        return ["".join(fragments) for fragments, _ in self.writes]

    @property
    def params(self) -> List[List[Any]]:
        return [params for _, params in self.writes]


@pytest.fixture
def make_source():
    """Factory fixture building a :class:`FakeDatabase` with an ``id`` column."""

    def factory(count: int, columns: Sequence[str] = ("id",)) -> FakeDatabase:
        rows = [(i,) + tuple(f"v{i}" for _ in columns[1:]) for i in range(1, count + 1)]
        return FakeDatabase(columns, rows)

    return factory


@pytest.fixture
def make_database():
    """Factory fixture for :class:`FakeDatabase` over explicit rows."""
    return FakeDatabase


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def make_sink():
    """Factory fixture for :class:`MemorySink`, e.g. ``make_sink(fail_on_write=2)``."""
    return MemorySink


@pytest.fixture
def sqlite_source(tmp_path):
    """SQLite database file with a table ``t`` holding ids 1, 2 and 3.

    Yields
    ------
        SQLAlchemy URL of the database

    """
    url = f"sqlite:///{tmp_path / 'source.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(
            text("INSERT INTO t (id, name) VALUES (1, 'one'), (2, 'two'), (3, 'three')")
        )
    engine.dispose()
    yield url


@pytest.fixture
def sqlite_dest(tmp_path):
    """Empty SQLite database file with a table ``t`` matching ``sqlite_source``.

    Yields
    ------
        SQLAlchemy URL of the database

    """
    url = f"sqlite:///{tmp_path / 'dest.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)"))
    engine.dispose()
    yield url


def read_all(url: str, sql: str) -> List[Tuple[Any, ...]]:
    """Run ``sql`` against ``url`` and return every row."""
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return [tuple(row) for row in conn.execute(text(sql))]
    finally:
        engine.dispose()


@pytest.fixture
def fetch_rows():
    return read_all
