"""Exception hierarchy for sqlcopy.

Library code raises these exceptions chained to the underlying driver or OS
error. Only the dataset runner catches them broadly, so that one failing
dataset does not stop the others.
"""

from typing import Any, Dict, Optional


class SQLCopyError(Exception):
    """Base exception for all sqlcopy errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} (Context: {context_str})"


class ConfigurationError(SQLCopyError):
    """Raised when the configuration file is missing, malformed or invalid."""


class PaginationError(ConfigurationError):
    """Raised when pagination parameters cannot be interpreted."""


class DatabaseConnectionError(SQLCopyError):
    """Raised when a database connection cannot be opened or closed."""


class QueryExecutionError(SQLCopyError):
    """Raised when a source query or destination statement fails."""


class ScanError(SQLCopyError):
    """Raised when a row cannot be fetched from an open result cursor."""


class ReaderStateError(SQLCopyError):
    """Raised when the data reader is used out of order."""


class SinkWriteError(SQLCopyError):
    """Raised when a flushed batch cannot be written to its sink."""
