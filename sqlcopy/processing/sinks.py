"""Destinations that receive flushed INSERT batches."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Optional, Sequence, Union

from sqlcopy.db.database import Database
from sqlcopy.exceptions import QueryExecutionError, SinkWriteError
from sqlcopy.logging import get_logger

logger = get_logger(__name__)


class Sink(ABC):
    """A destination for complete INSERT statements.

    Every ``write`` call carries exactly one statement, so implementations can
    treat it as one unit of work.
    """

    @abstractmethod
    def write(self, fragments: Sequence[str], params: Sequence[Any]) -> None:
        """Write one statement.

        Args:
            fragments: Statement text pieces, joined without a separator
            params: Positional values for the statement's ``?`` placeholders
        """

    @abstractmethod
    def describe(self) -> str:
        """Return a short description of the destination for log lines."""


class FileSink(Sink):
    """Appends each statement, followed by a newline, to a text file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file: Optional[IO[str]] = None

    def open(self) -> None:
        if self._file is not None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(
                self.path, "w", encoding="utf-8", errors="surrogateescape"
            )
        except OSError as e:
            raise SinkWriteError(
                "Cannot open output file", {"path": str(self.path)}
            ) from e
        logger.debug(f"Opened output file {self.path}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "FileSink":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def write(self, fragments: Sequence[str], params: Sequence[Any]) -> None:
        if self._file is None:
            raise SinkWriteError("File sink is not open", {"path": str(self.path)})
        try:
            self._file.write("".join(fragments) + "\n")
        except OSError as e:
            raise SinkWriteError(
                "Failed to write to output file", {"path": str(self.path)}
            ) from e

    def describe(self) -> str:
        return f"Rows processed to file {self.path}"


class DatabaseSink(Sink):
    """Executes each statement against the destination database and commits."""

    def __init__(self, database: Database, table_name: str):
        self.database = database
        self.table_name = table_name

    def write(self, fragments: Sequence[str], params: Sequence[Any]) -> None:
        try:
            self.database.execute("".join(fragments), params)
        except QueryExecutionError as e:
            raise SinkWriteError(
                "Failed to insert batch", {"table": self.table_name}
            ) from e

    def describe(self) -> str:
        return f"Rows processed to table {self.table_name}"
