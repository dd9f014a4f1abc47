"""File path helpers for log and output files."""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
OUTPUT_SUFFIX = ".sql"


def with_timestamp(path: Union[str, Path], now: Optional[datetime] = None) -> Path:
    """Insert the current date and time before the file extension.

    ``logs/run.log`` becomes ``logs/run_20250131_235959.log``.
    """
    path = Path(path)
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return path.with_name(f"{path.stem}_{stamp}{path.suffix}")


def output_file_for(table: str, output_dir: Union[str, Path] = ".") -> Path:
    """Return the ``.sql`` file that receives the statements for ``table``."""
    return Path(output_dir) / f"{table}{OUTPUT_SUFFIX}"
