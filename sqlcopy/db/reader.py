"""Row stream driver: pages through a source query one row at a time."""

import time
from typing import Any, List, Optional, Sequence, Tuple

from sqlcopy.db.database import Database, ResultCursor
from sqlcopy.db.formatter import wrap_columns
from sqlcopy.db.pagination import PaginationStrategy, PaginationType, coerce_int
from sqlcopy.exceptions import DatabaseConnectionError, ReaderStateError
from sqlcopy.logging import get_logger

logger = get_logger(__name__)


class DataReader:
    """Stream rows of a paginated query from a source database.

    The reader asks its pagination strategy for a new query whenever the
    current page runs dry. The stream ends when a fresh page is empty, or when
    the strategy returns the same text as the page before, which happens for
    queries that carry no placeholder for their pagination type.

    Args:
        database: Source connection, owned by the reader
        strategy: Pagination strategy producing the query for each page
        args: Positional parameters bound to every page query
        execution_time: Seconds after which the connection is renewed before
            the next query; 0 disables renewal
        always_renew: Renew the connection before every query
    """

    def __init__(
        self,
        database: Database,
        strategy: PaginationStrategy,
        args: Optional[Sequence[Any]] = None,
        execution_time: float = 0,
        always_renew: bool = False,
    ):
        self.database = database
        self.strategy = strategy
        self.args = list(args or [])
        self.execution_time = execution_time
        self.always_renew = always_renew

        self._cursor: Optional[ResultCursor] = None
        self._columns: List[str] = []
        self._row: Optional[Tuple[Any, ...]] = None
        self._started_at: Optional[float] = None
        self.previous_query = ""
        self.last_query = ""
        self.query_count = 0

    def open(self) -> None:
        """Connect to the source; a fresh session restarts the strategy."""
        if self._cursor is None and not self.last_query:
            self.strategy.reset()
        self.database.open()

    def close(self) -> None:
        """Release the cursor and connection and forget all session state.

        The strategy keeps its position until the next :meth:`open`, so the
        last cursor value can still be inspected after the stream ends.
        """
        self._close_cursor()
        self._columns = []
        self._row = None
        self._started_at = None
        self.previous_query = ""
        self.last_query = ""
        self.database.close()

    def __enter__(self) -> "DataReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except DatabaseConnectionError as e:
            logger.warning(f"Failed to close source connection after an error: {e}")

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def wrapped_columns(self, quote: str = "`") -> List[str]:
        return wrap_columns(self._columns, quote)

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            cursor.close()

    def _renew_connection_if_needed(self) -> None:
        if self.always_renew:
            self._renew_connection()
            return
        if self.execution_time <= 0:
            return
        if self._started_at is None:
            self._started_at = time.monotonic()
            return
        if time.monotonic() - self._started_at > self.execution_time:
            logger.debug(
                f"Session exceeded {self.execution_time}s, renewing source connection"
            )
            self._renew_connection()

    def _renew_connection(self) -> None:
        self._close_cursor()
        self.database.close()
        self.database.open()
        self._started_at = time.monotonic()

    def _query(self) -> None:
        query = self.strategy.next_query_text()
        self.previous_query = self.last_query
        self.last_query = query

        self._renew_connection_if_needed()
        if not self.database.is_open():
            self.database.open()

        self._close_cursor()
        self._cursor = self.database.query(query, self.args)
        self._columns = self._cursor.columns()
        self.query_count += 1

    def _fetch(self) -> bool:
        has_row = self._cursor.advance()
        self._row = self._cursor.scan() if has_row else None
        return has_row

    def advance(self) -> bool:
        """Move to the next row, running further page queries as needed.

        Returns:
            True if a row is available for :meth:`scan`; False once the stream
            is exhausted, in which case the reader has closed itself
        """
        if self._cursor is None:
            self._query()

        has_row = self._fetch()
        if not has_row:
            self._query()
            # Same text as the previous page means the strategy cannot move on
            if self.last_query != self.previous_query:
                has_row = self._fetch()

        if not has_row:
            self.close()
            return False
        return True

    def scan(self) -> Tuple[Any, ...]:
        """Return the current row.

        For ``orderbyid`` pagination the first column becomes the new cursor id.

        Raises:
            ReaderStateError: If :meth:`advance` has not just returned True
        """
        if self._row is None:
            raise ReaderStateError("scan() called without a current row")
        if self.strategy.type == PaginationType.ORDER_BY_ID:
            self.strategy.set_parameter("id", coerce_int(self._row[0]))
        return self._row
