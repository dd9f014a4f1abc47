"""Run configured datasets end to end."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from sqlcopy.config import AppConfig, DatabaseConfig, DatasetConfig
from sqlcopy.db.database import Database
from sqlcopy.db.pagination import create_strategy
from sqlcopy.db.reader import DataReader
from sqlcopy.logging import dataset_logger, get_logger
from sqlcopy.processing.rows_processor import BatchSettings, RowsProcessor
from sqlcopy.processing.sinks import DatabaseSink, FileSink
from sqlcopy.utils.paths import output_file_for

logger = get_logger(__name__)

LogLike = Union[logging.Logger, logging.LoggerAdapter]


class DatasetStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DatasetResult:
    """Outcome of one dataset run."""

    table: str
    status: DatasetStatus = DatasetStatus.SUCCESS
    rows_to_file: Optional[int] = None
    rows_to_db: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == DatasetStatus.FAILED


def build_reader(source: DatabaseConfig, dataset: DatasetConfig) -> DataReader:
    """Create a reader over a new source connection for ``dataset``."""
    strategy = create_strategy(
        dataset.query_type, dataset.query, dataset.pagination_params()
    )
    database = Database(source.sqlalchemy_url(), source.engine_options)
    return DataReader(database, strategy, execution_time=dataset.execution_time)


def batch_settings(dataset: DatasetConfig) -> BatchSettings:
    return BatchSettings(
        table_name=dataset.table,
        insert_command=dataset.insert_command,
        rows_per_command=dataset.rows,
        statement_type=dataset.sql_statement,
        identifier_quote=dataset.identifier_quote,
    )


def copy_to_file(
    config: AppConfig,
    dataset: DatasetConfig,
    output_dir: Union[str, Path],
    log: LogLike,
) -> int:
    """Write the dataset's INSERT statements to ``<output_dir>/<table>.sql``."""
    log.info(f"Write to file started for table: {dataset.table}")
    with FileSink(output_file_for(dataset.table, output_dir)) as sink:
        processor = RowsProcessor(
            build_reader(config.source, dataset), sink, batch_settings(dataset), log
        )
        rows = processor.run()
    log.info(f"Write to file completed for table: {dataset.table}")
    return rows


def copy_to_db(config: AppConfig, dataset: DatasetConfig, log: LogLike) -> int:
    """Insert the dataset's rows into the destination database.

    Session statements run on the same destination connection as the inserts.
    """
    log.info(f"Write to db started for table: {dataset.table}")
    with Database(config.dest.sqlalchemy_url(), config.dest.engine_options) as dest:
        if dataset.on_insert_session_start:
            dest.execute_script(dataset.on_insert_session_start)

        processor = RowsProcessor(
            build_reader(config.source, dataset),
            DatabaseSink(dest, dataset.table),
            batch_settings(dataset),
            log,
        )
        rows = processor.run()

        if dataset.on_insert_session_end:
            dest.execute_script(dataset.on_insert_session_end)
    log.info(f"Write to db completed for table: {dataset.table}")
    return rows


def process_dataset(
    config: AppConfig, dataset: DatasetConfig, output_dir: Union[str, Path] = "."
) -> DatasetResult:
    """Copy one dataset to every destination it names.

    Never raises: failures are logged and reported in the result.
    """
    log = dataset_logger(dataset.table)
    result = DatasetResult(table=dataset.table)

    if not dataset.enabled:
        log.warning(f"Skipping disabled table: {dataset.table}")
        result.status = DatasetStatus.SKIPPED
        return result
    if not dataset.table:
        log.error("Skipping dataset: table name is empty")
        result.status = DatasetStatus.SKIPPED
        return result
    if not dataset.query:
        log.error(f"Skipping table {dataset.table}: query is empty")
        result.status = DatasetStatus.SKIPPED
        return result

    log.info(f"Processing table: {dataset.table}")
    try:
        if dataset.copy_to_file:
            result.rows_to_file = copy_to_file(config, dataset, output_dir, log)
        if dataset.copy_to_db:
            result.rows_to_db = copy_to_db(config, dataset, log)
    except Exception as e:
        log.error(f"Error processing table {dataset.table}: {e}")
        log.debug("Dataset failure details", exc_info=True)
        result.status = DatasetStatus.FAILED
        result.error = str(e)
        return result

    log.info(f"Processing completed for table: {dataset.table}")
    return result


def run_datasets(
    config: AppConfig,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    output_dir: Union[str, Path] = ".",
) -> List[DatasetResult]:
    """Run every dataset of ``config``.

    Args:
        config: Loaded configuration
        parallel: Run datasets concurrently, one thread per dataset
        max_workers: Upper bound on concurrent datasets
        output_dir: Directory receiving ``.sql`` files

    Returns:
        One result per dataset, in configuration order
    """
    datasets = config.datasets
    logger.info(f"Running {len(datasets)} dataset(s)")
    if not parallel or len(datasets) < 2:
        return [process_dataset(config, dataset, output_dir) for dataset in datasets]

    workers = max_workers or len(datasets)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(process_dataset, config, dataset, output_dir)
            for dataset in datasets
        ]
        return [future.result() for future in futures]
