"""sqlcopy - copy query results between databases as batched INSERT statements."""

__version__ = "2.0.0"
__package_name__ = "sqlcopy"

# Initialize logging with default configuration
from sqlcopy.logging import configure_logging

# Set up default logging configuration
configure_logging()

from .exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    PaginationError,
    QueryExecutionError,
    ReaderStateError,
    ScanError,
    SinkWriteError,
    SQLCopyError,
)

__all__ = [
    "SQLCopyError",
    "ConfigurationError",
    "PaginationError",
    "DatabaseConnectionError",
    "QueryExecutionError",
    "ScanError",
    "ReaderStateError",
    "SinkWriteError",
]
