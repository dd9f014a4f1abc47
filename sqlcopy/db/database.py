"""Thin SQLAlchemy wrapper: one reopenable connection per database."""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, CursorResult, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from sqlcopy.db.sql_text import split_statements, stringify
from sqlcopy.exceptions import (
    DatabaseConnectionError,
    QueryExecutionError,
    ReaderStateError,
    ScanError,
)
from sqlcopy.logging import get_logger

logger = get_logger(__name__)

# DB-API paramstyles that expect %s instead of ? for positional parameters
_FORMAT_PARAMSTYLES = ("format", "pyformat")


class ResultCursor:
    """Row-at-a-time view over an executed query."""

    def __init__(self, result: CursorResult):
        self._result = result
        self._row: Optional[Tuple[Any, ...]] = None

    def columns(self) -> List[str]:
        return list(self._result.keys())

    def advance(self) -> bool:
        """Fetch the next row; return False once the result is exhausted."""
        try:
            row = self._result.fetchone()
        except SQLAlchemyError as e:
            raise ScanError("Failed to fetch the next row") from e
        self._row = tuple(row) if row is not None else None
        return self._row is not None

    def scan(self) -> Tuple[Any, ...]:
        if self._row is None:
            raise ReaderStateError("No current row; advance() must return True first")
        return self._row

    def close(self) -> None:
        self._result.close()


class Database:
    """A single SQLAlchemy connection that can be opened, closed and reopened.

    Connections are not pooled: ``close()`` really disconnects, which is what
    the reader relies on to escape server-side statement time limits.
    """

    def __init__(
        self,
        url: Union[str, URL],
        engine_options: Optional[Dict[str, Any]] = None,
    ):
        self.url = make_url(url)
        self.engine_options = engine_options or {}
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None

    def __repr__(self) -> str:
        return f"Database({self.safe_url!r})"

    @property
    def safe_url(self) -> str:
        return self.url.render_as_string(hide_password=True)

    @property
    def paramstyle(self) -> Optional[str]:
        if self._engine is None:
            return None
        return self._engine.dialect.paramstyle

    def open(self) -> None:
        """Connect to the database. Does nothing if already connected."""
        if self._connection is not None:
            return
        try:
            self._engine = create_engine(
                self.url, poolclass=NullPool, **self.engine_options
            )
            self._connection = self._engine.connect()
        except SQLAlchemyError as e:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            raise DatabaseConnectionError(
                "Failed to connect to database", {"url": self.safe_url}
            ) from e
        logger.debug(f"Opened connection to {self.safe_url}")

    def close(self) -> None:
        """Disconnect. Does nothing if already closed."""
        if self._connection is None:
            return
        connection, engine = self._connection, self._engine
        self._connection = None
        self._engine = None
        try:
            connection.close()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                "Failed to close database connection", {"url": self.safe_url}
            ) from e
        finally:
            engine.dispose()
        logger.debug(f"Closed connection to {self.safe_url}")

    def is_open(self) -> bool:
        return self._connection is not None

    def __enter__(self) -> "Database":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return
        # Keep the error that is already propagating
        try:
            self.close()
        except DatabaseConnectionError as e:
            logger.warning(f"Failed to close {self.safe_url} after an error: {e}")

    def _require_connection(self) -> Connection:
        if self._connection is None:
            raise DatabaseConnectionError(
                "Database connection is not open", {"url": self.safe_url}
            )
        return self._connection

    def _driver_sql(self, sql: str, params: Sequence[Any]) -> str:
        if params and self.paramstyle in _FORMAT_PARAMSTYLES:
            return sql.replace("?", "%s")
        return sql

    def query(self, sql: str, args: Optional[Sequence[Any]] = None) -> ResultCursor:
        """Execute a row-returning query and return a streaming cursor."""
        connection = self._require_connection()
        params = tuple(args) if args else None
        logger.debug(f"Query: {stringify(sql)}")
        try:
            result = connection.exec_driver_sql(
                self._driver_sql(sql, args or ()),
                params,
                execution_options={
                    "stream_results": True,
                    "no_parameters": params is None,
                },
            )
        except SQLAlchemyError as e:
            raise QueryExecutionError(
                "Query execution failed", {"query": stringify(sql)}
            ) from e
        if not result.returns_rows:
            result.close()
            raise QueryExecutionError(
                "Query did not return rows", {"query": stringify(sql)}
            )
        return ResultCursor(result)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute one statement with positional ``?`` parameters and commit.

        Returns:
            Number of affected rows as reported by the driver
        """
        connection = self._require_connection()
        bound = tuple(params) if params else None
        try:
            # Literal statements go to the driver untouched, so % in values is safe
            result = connection.exec_driver_sql(
                self._driver_sql(sql, params or ()),
                bound,
                execution_options={"no_parameters": bound is None},
            )
            rowcount = result.rowcount
            connection.commit()
        except SQLAlchemyError as e:
            try:
                connection.rollback()
            except SQLAlchemyError as rollback_error:
                logger.warning(
                    f"Rollback failed after statement error: {rollback_error}"
                )
            raise QueryExecutionError(
                "Statement execution failed",
                {"statement": stringify(sql)[:200], "params": len(params or ())},
            ) from e
        return rowcount

    def execute_script(self, script: str) -> None:
        """Execute every ``;`` separated statement of ``script`` in order."""
        for statement in split_statements(script):
            self.execute(statement)
