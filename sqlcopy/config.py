"""Configuration loading for sqlcopy.

A configuration file names a source and a destination database, a set of
dataset defaults and the list of datasets to copy::

    config:
      source: {url: "mysql+pymysql://user:pw@host/db"}
      dest: {driver: postgresql+psycopg2, host: localhost, database: target}
      default_dataset: {rows: 1000, copy_to: "file,db", query_type: limitoffset}
    datasets:
      - query: SELECT * FROM users
        table: users

JSON files are valid YAML and load the same way. ``${VAR}`` and
``${VAR|default}`` references in string values are replaced from the
environment before the configuration is parsed.
"""

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from sqlalchemy.engine import URL, make_url

from sqlcopy.db.formatter import STATEMENT_PREPARED, STATEMENT_RAW
from sqlcopy.db.pagination import DEFAULT_LIMIT
from sqlcopy.db.sql_text import from_table_name
from sqlcopy.exceptions import ConfigurationError
from sqlcopy.logging import get_logger

logger = get_logger(__name__)

COPY_TO_FILE = "file"
COPY_TO_DB = "db"

VARIABLE_PATTERN = re.compile(r"\$\{([^}|]+)(?:\|([^}]*))?\}")

# Used when neither the dataset nor default_dataset sets a value
BUILTIN_DEFAULTS: Dict[str, Any] = {
    "insert_command": "INSERT INTO",
    "rows": 1000,
    "copy_to": COPY_TO_FILE,
    "query_type": "simple",
    "sql_statement": STATEMENT_RAW,
    "execution_time": 0,
    "limit": DEFAULT_LIMIT,
    "initial_id": 0,
    "initial_offset": 0,
    "max_offset": 0,
    "range_start": None,
    "range_end": None,
    "range_step": None,
    "identifier_quote": "`",
    "on_insert_session_start": "",
    "on_insert_session_end": "",
}

_INT_FIELDS = (
    "rows",
    "execution_time",
    "limit",
    "initial_id",
    "initial_offset",
    "max_offset",
)


def substitute_env(data: Any, environ: Optional[Dict[str, str]] = None) -> Any:
    """Replace ``${VAR}`` / ``${VAR|default}`` in every string of ``data``.

    Unknown variables without a default are left untouched and logged.
    """
    env = os.environ if environ is None else environ

    def replace(match: re.Match) -> str:
        name = match.group(1).strip()
        default = match.group(2)
        if name in env:
            return env[name]
        if default is not None:
            return default.strip().strip("'\"")
        logger.warning(f"Environment variable '{name}' is not set")
        return match.group(0)

    if isinstance(data, str):
        return VARIABLE_PATTERN.sub(replace, data)
    if isinstance(data, dict):
        return {key: substitute_env(value, env) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env(item, env) for item in data]
    return data


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _to_bool(name: str, value: Any) -> bool:
    """Read a flag that may arrive as text from env substitution or quoted YAML."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigurationError(
        f"Dataset field '{name}' must be a boolean", {"value": value}
    )


@dataclass
class DatabaseConfig:
    """Connection settings for one database.

    Either ``url`` (alias ``dsn``) or ``driver`` plus host details must be
    given. ``driver`` is a SQLAlchemy dialect name such as
    ``mysql+pymysql`` or ``postgresql+psycopg2``.
    """

    url: Optional[str] = None
    driver: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    query: Dict[str, Any] = field(default_factory=dict)
    engine_options: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]]) -> "DatabaseConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"'{name}' must be a mapping")
        values = dict(data)
        port = values.get("port")
        try:
            port = int(port) if port not in (None, "") else None
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"'{name}.port' must be an integer", {"port": port}
            )
        return cls(
            url=values.get("url") or values.get("dsn"),
            driver=values.get("driver"),
            host=values.get("host"),
            port=port,
            database=values.get("database") or values.get("dbname"),
            username=values.get("username") or values.get("user"),
            password=values.get("password"),
            query=dict(values.get("query") or {}),
            engine_options=dict(values.get("engine_options") or {}),
            description=values.get("description") or "",
        )

    def is_configured(self) -> bool:
        return bool(self.url or self.driver)

    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL for these settings."""
        if self.url:
            return make_url(self.url)
        if not self.driver:
            raise ConfigurationError("Database url or driver must be set")
        return URL.create(
            self.driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query=self.query,
        )


@dataclass
class DatasetConfig:
    """One query to copy and how to write its rows."""

    query: str = ""
    table: str = ""
    enabled: bool = True
    description: str = ""
    insert_command: str = BUILTIN_DEFAULTS["insert_command"]
    rows: int = BUILTIN_DEFAULTS["rows"]
    copy_to: str = BUILTIN_DEFAULTS["copy_to"]
    query_type: str = BUILTIN_DEFAULTS["query_type"]
    sql_statement: str = BUILTIN_DEFAULTS["sql_statement"]
    execution_time: int = BUILTIN_DEFAULTS["execution_time"]
    limit: int = BUILTIN_DEFAULTS["limit"]
    initial_id: int = 0
    initial_offset: int = 0
    max_offset: int = 0
    range_start: Optional[str] = None
    range_end: Optional[str] = None
    range_step: Optional[str] = None
    identifier_quote: str = BUILTIN_DEFAULTS["identifier_quote"]
    on_insert_session_start: str = ""
    on_insert_session_end: str = ""

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], defaults: Optional[Dict[str, Any]] = None
    ) -> "DatasetConfig":
        """Build a dataset, filling empty fields from ``defaults``.

        A missing ``table`` is taken from the first ``FROM`` clause of the
        query.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Each dataset must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown dataset keys: {', '.join(unknown)}")

        defaults = defaults or {}
        values: Dict[str, Any] = {}
        for name, builtin in BUILTIN_DEFAULTS.items():
            value = data.get(name)
            if _is_empty(value):
                value = defaults.get(name)
            if _is_empty(value):
                value = builtin
            values[name] = value

        for name in _INT_FIELDS:
            try:
                values[name] = int(values[name])
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Dataset field '{name}' must be an integer",
                    {"value": values[name]},
                )
        for name in ("range_start", "range_end", "range_step"):
            if values[name] is not None:
                values[name] = str(values[name])

        query = data.get("query") or ""
        table = data.get("table") or ""
        if not table and query:
            table = from_table_name(query)

        enabled = data.get("enabled")
        enabled = True if _is_empty(enabled) else _to_bool("enabled", enabled)
        return cls(
            query=query,
            table=table,
            enabled=enabled,
            description=data.get("description") or "",
            **values,
        )

    @property
    def copy_to_file(self) -> bool:
        return COPY_TO_FILE in self.copy_to

    @property
    def copy_to_db(self) -> bool:
        return COPY_TO_DB in self.copy_to

    @property
    def prepared(self) -> bool:
        return self.sql_statement == STATEMENT_PREPARED

    def pagination_params(self) -> Dict[str, Any]:
        """Initial parameters for :func:`sqlcopy.db.pagination.create_strategy`."""
        return {
            "limit": self.limit,
            "offset": self.initial_offset,
            "max_offset": self.max_offset,
            "id": self.initial_id,
            "start": self.range_start,
            "end": self.range_end,
            "step": self.range_step,
        }


@dataclass
class AppConfig:
    """A whole configuration file."""

    source: DatabaseConfig
    dest: DatabaseConfig
    datasets: List[DatasetConfig] = field(default_factory=list)
    default_dataset: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "AppConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")
        main = data.get("config") or {}
        if not isinstance(main, dict):
            raise ConfigurationError("'config' must be a mapping")

        defaults = main.get("default_dataset") or {}
        if not isinstance(defaults, dict):
            raise ConfigurationError("'config.default_dataset' must be a mapping")

        datasets = data.get("datasets") or []
        if not isinstance(datasets, list):
            raise ConfigurationError("'datasets' must be a list")

        return cls(
            source=DatabaseConfig.from_dict("config.source", main.get("source")),
            dest=DatabaseConfig.from_dict("config.dest", main.get("dest")),
            datasets=[DatasetConfig.from_dict(item, defaults) for item in datasets],
            default_dataset=dict(defaults),
            description=data.get("description") or main.get("description") or "",
        )

    def validate(self) -> None:
        """Check that the configuration can be run.

        Raises:
            ConfigurationError: Listing every problem found
        """
        messages = []
        if not self.source.is_configured():
            messages.append("source database url or driver cannot be empty")
        if not self.dest.is_configured():
            messages.append("destination database url or driver cannot be empty")
        if not self.datasets:
            messages.append("at least one dataset must be configured")
        if messages:
            raise ConfigurationError("Invalid configuration: " + "; ".join(messages))


def load_config_from_string(text: str) -> AppConfig:
    """Parse a YAML (or JSON) configuration document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse configuration: {e}") from e
    return AppConfig.from_dict(substitute_env(data or {}))


def load_config(path: Union[str, Path]) -> AppConfig:
    """Read and parse the configuration file at ``path``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            "Cannot read configuration file", {"path": str(path)}
        ) from e
    logger.debug(f"Loaded configuration from {path}")
    return load_config_from_string(text)
