import logging
import sys
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Tuple, Union

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Modules that produce verbose, per-query output
# These will be set to WARNING by default unless verbose mode is enabled
TECHNICAL_MODULES = [
    "sqlcopy.db.database",
    "sqlcopy.db.reader",
]

DATASET_LOGGER_NAME = "sqlcopy.dataset"


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    Loggers inside the ``sqlcopy`` package propagate to the root logger, which
    ``configure_logging`` equips with the console (and optional file) handler.

    Args:
        name: The name for the logger, typically __name__

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class DatasetLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prefixes every message with the dataset table."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['dataset']}] {msg}", kwargs


def dataset_logger(table: str) -> DatasetLoggerAdapter:
    """Return a logger bound to a single dataset run.

    Args:
        table: Target table of the dataset, used as the message prefix

    Returns:
        Logger adapter carrying the dataset context
    """
    return DatasetLoggerAdapter(
        logging.getLogger(DATASET_LOGGER_NAME), {"dataset": table or "-"}
    )


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure logging settings based on command line flags.

    Args:
        verbose: Whether to enable verbose mode (shows all debug logs)
        quiet: Whether to enable quiet mode (only shows warnings and errors)
        log_file: Optional path of a file receiving a copy of every log line
    """
    # Determine the root logging level based on flags
    if quiet:
        root_level = logging.WARNING  # Only warnings and errors
    elif verbose:
        root_level = logging.DEBUG  # All debug logs
    else:
        root_level = DEFAULT_LOG_LEVEL  # Default level - information messages

    # Configure the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Clear existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(DEFAULT_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set specific levels for technical modules
    for module_name in TECHNICAL_MODULES:
        module_logger = logging.getLogger(module_name)

        # In verbose mode, show all logs from technical modules
        # Otherwise, only show warnings and above
        if verbose:
            module_logger.setLevel(logging.DEBUG)
        else:
            module_logger.setLevel(logging.WARNING)


def suppress_third_party_loggers():
    """Suppress noisy third-party loggers."""
    noisy_loggers = [
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "urllib3",
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logging_status() -> Dict[str, Any]:
    """Get the current logging status of all sqlcopy modules.

    Returns:
        Dictionary with logging status information
    """
    root_logger = logging.getLogger()
    root_level = logging.getLevelName(root_logger.level)

    modules = {}
    for name in logging.root.manager.loggerDict:
        if not name.startswith("sqlcopy"):
            continue
        logger = logging.getLogger(name)
        modules[name] = {
            "level": logging.getLevelName(logger.level),
            "propagate": logger.propagate,
            "has_handlers": bool(logger.handlers),
        }

    return {
        "root_level": root_level,
        "handlers": [type(h).__name__ for h in root_logger.handlers],
        "modules": modules,
    }
