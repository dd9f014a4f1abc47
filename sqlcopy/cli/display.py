"""Rich output helpers for the sqlcopy CLI."""

from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sqlcopy.config import AppConfig
from sqlcopy.processing.runner import DatasetResult, DatasetStatus

console = Console()

_STATUS_STYLES = {
    DatasetStatus.SUCCESS: "[green]✅ success[/green]",
    DatasetStatus.SKIPPED: "[yellow]⏭ skipped[/yellow]",
    DatasetStatus.FAILED: "[red]❌ failed[/red]",
}


def _rows(value) -> str:
    return "-" if value is None else f"{value:,}"


def display_results(results: List[DatasetResult]) -> None:
    """Print one table row per dataset run."""
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Table", style="cyan")
    table.add_column("Status")
    table.add_column("Rows to file", justify="right")
    table.add_column("Rows to db", justify="right")
    table.add_column("Error", style="red")

    for result in results:
        table.add_row(
            result.table or "-",
            _STATUS_STYLES[result.status],
            _rows(result.rows_to_file),
            _rows(result.rows_to_db),
            result.error or "",
        )

    console.print(table)


def display_config_summary(config: AppConfig) -> None:
    """Print the datasets a configuration would run."""
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Table", style="cyan")
    table.add_column("Enabled")
    table.add_column("Query type")
    table.add_column("Statement")
    table.add_column("Rows/command", justify="right")
    table.add_column("Copy to")

    for dataset in config.datasets:
        table.add_row(
            dataset.table or "-",
            "yes" if dataset.enabled else "no",
            dataset.query_type,
            dataset.sql_statement,
            str(dataset.rows),
            dataset.copy_to,
        )

    console.print(table)


def display_error(error: Exception, operation: str) -> None:
    console.print(
        Panel(
            f"[red]{error}[/red]",
            title=f"❌ Error during {operation}",
            border_style="red",
        )
    )
