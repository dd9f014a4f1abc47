#!/usr/bin/env python3
"""sqlcopy command line interface."""

from pathlib import Path
from typing import Optional

import typer

from sqlcopy.cli.display import (
    console,
    display_config_summary,
    display_error,
    display_results,
)
from sqlcopy.config import AppConfig, load_config
from sqlcopy.exceptions import ConfigurationError
from sqlcopy.logging import (
    configure_logging,
    get_logger,
    get_logging_status,
    suppress_third_party_loggers,
)
from sqlcopy.processing.runner import run_datasets
from sqlcopy.utils.paths import with_timestamp

logger = get_logger(__name__)

app = typer.Typer(
    name="sqlcopy",
    help="sqlcopy - copy query results between databases as batched INSERTs",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        from sqlcopy import __version__

        console.print(f"sqlcopy v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Copy rows from a source database to SQL files and/or a destination database.

    Examples:
        sqlcopy run --config config.yml
        sqlcopy run --config config.yml --parallel --log logs/copy.log
        sqlcopy validate --config config.yml
    """


def _load(config_path: Path) -> AppConfig:
    try:
        config = load_config(config_path)
        config.validate()
    except ConfigurationError as e:
        display_error(e, "configuration loading")
        logger.error(f"Error loading config: {e}")
        raise typer.Exit(1)
    return config


@app.command()
def run(
    config_path: Path = typer.Option(
        Path("config.yml"), "--config", "-c", help="Path to the configuration file"
    ),
    log: Optional[Path] = typer.Option(
        None,
        "--log",
        "-l",
        help="Log file; the current date and time are added to its name",
    ),
    parallel: bool = typer.Option(
        False, "--parallel", "-p", help="Run datasets concurrently"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Maximum concurrent datasets"
    ),
    output_dir: Path = typer.Option(
        Path("."), "--output-dir", "-o", help="Directory for generated .sql files"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show warnings and errors"
    ),
) -> None:
    """Run every dataset of a configuration file."""
    log_file = None
    if log is not None:
        log_file = with_timestamp(log)
        log_file.parent.mkdir(parents=True, exist_ok=True)
    configure_logging(verbose=verbose, quiet=quiet, log_file=log_file)
    suppress_third_party_loggers()
    if verbose:
        logger.debug(f"Logging status: {get_logging_status()}")

    logger.info("Program started")
    logger.info(f"Config file: {config_path}")
    config = _load(config_path)

    results = run_datasets(
        config, parallel=parallel, max_workers=workers, output_dir=output_dir
    )
    display_results(results)
    logger.info("Program ended")

    if any(result.failed for result in results):
        raise typer.Exit(1)


@app.command()
def validate(
    config_path: Path = typer.Option(
        Path("config.yml"), "--config", "-c", help="Path to the configuration file"
    ),
) -> None:
    """Load and validate a configuration file without copying anything."""
    config = _load(config_path)
    display_config_summary(config)
    console.print(
        f"✅ [bold green]Configuration is valid[/bold green] "
        f"({len(config.datasets)} dataset(s))"
    )


if __name__ == "__main__":
    app()
