"""Accumulate streamed rows into multi-row INSERT batches."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from sqlcopy.db.formatter import (
    STATEMENT_PREPARED,
    STATEMENT_RAW,
    insert_command,
    insert_statement_for,
)
from sqlcopy.db.reader import DataReader
from sqlcopy.logging import get_logger
from sqlcopy.processing.sinks import Sink

logger = get_logger(__name__)


@dataclass
class BatchSettings:
    """How rows of one dataset are turned into INSERT statements."""

    table_name: str
    insert_command: str = "INSERT INTO"
    rows_per_command: int = 1000
    statement_type: str = STATEMENT_RAW
    identifier_quote: str = "`"


class RowsProcessor:
    """Drain a :class:`DataReader` into a :class:`Sink`, one batch at a time.

    Each batch becomes one statement of the form
    ``INSERT INTO t (`a`, `b`) VALUES (...), (...);`` and is handed to the sink
    in a single ``write`` call. In prepared mode the row tuples are ``?``
    placeholders and the raw values travel alongside as bound parameters.
    """

    def __init__(
        self,
        reader: DataReader,
        sink: Sink,
        settings: BatchSettings,
        log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.reader = reader
        self.sink = sink
        self.settings = settings
        self.log = log or logger

        self._fragments: List[str] = []
        self._params: List[Any] = []
        self._columns: List[str] = []
        self._batch_rows = 0
        self.total_rows = 0

    def _reset(self) -> None:
        self._fragments = []
        self._params = []
        self._columns = []
        self._batch_rows = 0
        self.total_rows = 0

    def run(self) -> int:
        """Copy every row of the reader to the sink.

        Returns:
            Total number of rows written

        Raises:
            SinkWriteError: If the sink rejects a batch; batches written before
                the failure stay written
        """
        self._reset()
        with self.reader:
            while self.reader.advance():
                self._append_row(self.reader.scan())

        if self._batch_rows:
            self._flush()
        self.log.info(f"{self.sink.describe()}: {self.total_rows}")
        return self.total_rows

    def _append_row(self, values) -> None:
        settings = self.settings
        if self.total_rows == 0:
            self._columns = self.reader.wrapped_columns(settings.identifier_quote)

        row_text = insert_statement_for(settings.statement_type, values)
        if self._batch_rows == 0:
            self._fragments.append(
                insert_command(
                    settings.insert_command, settings.table_name, self._columns
                )
            )
            self._fragments.append(f"({row_text})")
        else:
            self._fragments.append(f", ({row_text})")
        if settings.statement_type == STATEMENT_PREPARED:
            self._params.extend(values)

        self._batch_rows += 1
        self.total_rows += 1

        if 0 < settings.rows_per_command <= self._batch_rows:
            self._flush()
            self.log.info(f"{self.sink.describe()}...: {self.total_rows}")

    def _flush(self) -> None:
        self._fragments.append(";")
        self.sink.write(self._fragments, self._params)
        self._fragments = []
        self._params = []
        self._batch_rows = 0
