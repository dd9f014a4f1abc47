"""Source access: pagination strategies, the row stream and value formatting."""

from sqlcopy.db.database import Database, ResultCursor
from sqlcopy.db.pagination import PaginationType, create_strategy
from sqlcopy.db.reader import DataReader

__all__ = [
    "Database",
    "ResultCursor",
    "DataReader",
    "PaginationType",
    "create_strategy",
]
