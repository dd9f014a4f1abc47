"""Pagination strategies that turn one base query into a sequence of pages.

Every strategy is a small dataclass tagged with a :class:`PaginationType` and
offering the same three operations:

* ``next_query_text()`` returns the query for the next page and advances the
  strategy's cursor;
* ``set_parameter(name, value)`` updates the running cursor state;
* ``reset()`` restores the state the strategy was created with.

Strategies never decide when to stop. The data reader detects exhaustion from
empty pages and from query text that no longer changes.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from sqlcopy.db.sql_text import trim_query
from sqlcopy.exceptions import PaginationError
from sqlcopy.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 1000
DATE_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"

ID_PLACEHOLDER = "{{id}}"
START_PLACEHOLDER = "{{start}}"
END_PLACEHOLDER = "{{end}}"


class PaginationType(str, Enum):
    """Tag identifying a pagination strategy in configuration files."""

    SIMPLE = "simple"
    LIMIT_OFFSET = "limitoffset"
    ORDER_BY_ID = "orderbyid"
    BETWEEN = "between"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "PaginationType":
        """Return the type for ``tag``; unknown or empty tags mean SIMPLE."""
        normalized = (tag or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        if normalized:
            logger.warning(
                f"Unknown query type '{tag}', falling back to '{cls.SIMPLE.value}'"
            )
        return cls.SIMPLE


def coerce_int(value: Any) -> int:
    """Coerce a scanned cursor value to an integer.

    Integers pass through, floats and decimals are truncated toward zero and
    text is parsed as a base-10 integer. Anything else coerces to zero and a
    warning is logged, since a zero cursor usually restarts the scan.
    """
    if isinstance(value, int):
        return int(value)
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            pass
    else:
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8", "replace")
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
    logger.warning(f"Cannot interpret {value!r} as an integer cursor value, using 0")
    return 0


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PaginationError(
            f"Pagination parameter '{name}' must be an integer", {"value": value}
        )


def _params_lower(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in (params or {}).items()}


@dataclass
class SimplePagination:
    """Runs the base query once, unchanged."""

    query: str
    type: ClassVar[PaginationType] = PaginationType.SIMPLE

    @classmethod
    def from_params(
        cls, query: str, params: Optional[Mapping[str, Any]] = None
    ) -> "SimplePagination":
        return cls(query=query)

    def reset(self) -> None:
        pass

    def set_parameter(self, name: str, value: Any) -> None:
        pass

    def next_query_text(self) -> str:
        return self.query


@dataclass
class LimitOffsetPagination:
    """Appends ``LIMIT <limit> OFFSET <offset>`` and advances the offset.

    Once ``max_offset`` is set and the running offset has passed it, the
    generated query asks for ``LIMIT 0 OFFSET 0`` so that the reader sees an
    empty page and stops.
    """

    query: str
    limit: int = DEFAULT_LIMIT
    initial_offset: int = 0
    max_offset: int = 0
    offset: int = field(init=False)
    type: ClassVar[PaginationType] = PaginationType.LIMIT_OFFSET

    def __post_init__(self):
        if self.limit <= 0:
            raise PaginationError(
                "Pagination parameter 'limit' must be positive", {"limit": self.limit}
            )
        self.offset = self.initial_offset

    @classmethod
    def from_params(
        cls, query: str, params: Optional[Mapping[str, Any]] = None
    ) -> "LimitOffsetPagination":
        values = _params_lower(params)
        return cls(
            query=query,
            limit=_to_int("limit", values.get("limit") or DEFAULT_LIMIT),
            initial_offset=_to_int("offset", values.get("offset") or 0),
            max_offset=_to_int("max_offset", values.get("max_offset") or 0),
        )

    def reset(self) -> None:
        self.offset = self.initial_offset

    def set_parameter(self, name: str, value: Any) -> None:
        key = name.lower()
        if key == "limit":
            self.limit = _to_int(key, value)
        elif key == "offset":
            self.offset = _to_int(key, value)
        elif key == "max_offset":
            self.max_offset = _to_int(key, value)

    def next_query_text(self) -> str:
        trimmed = trim_query(self.query)
        if 0 < self.max_offset < self.offset:
            return f"{trimmed} LIMIT 0 OFFSET 0;"
        query = f"{trimmed} LIMIT {self.limit} OFFSET {self.offset};"
        self.offset += self.limit
        return query


@dataclass
class OrderByCursorPagination:
    """Substitutes the last seen id for every ``{{id}}`` in the query.

    The data reader feeds the first column of each scanned row back through
    ``set_parameter("id", ...)``.
    """

    query: str
    initial_id: int = 0
    last_seen_id: int = field(init=False)
    type: ClassVar[PaginationType] = PaginationType.ORDER_BY_ID

    def __post_init__(self):
        self.last_seen_id = self.initial_id

    @classmethod
    def from_params(
        cls, query: str, params: Optional[Mapping[str, Any]] = None
    ) -> "OrderByCursorPagination":
        values = _params_lower(params)
        return cls(query=query, initial_id=_to_int("id", values.get("id") or 0))

    def reset(self) -> None:
        self.last_seen_id = self.initial_id

    def set_parameter(self, name: str, value: Any) -> None:
        if name.lower() == "id":
            self.last_seen_id = _to_int("id", value)

    def next_query_text(self) -> str:
        return self.query.replace(ID_PLACEHOLDER, str(self.last_seen_id))


_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")
# Seconds per unit
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: Any) -> timedelta:
    """Parse a duration such as ``1h``, ``0h10m``, ``1h30m15s`` or ``500ms``.

    A bare number is read as seconds.

    Raises:
        PaginationError: If ``text`` is not a valid duration
    """
    raw = str(text).strip()
    body = raw.lstrip("+-")
    sign = -1 if raw.startswith("-") else 1

    if _NUMBER_RE.fullmatch(body):
        return sign * timedelta(seconds=float(body))

    if not body:
        raise PaginationError("Invalid duration", {"step": raw})

    seconds = 0.0
    pos = 0
    while pos < len(body):
        match = _DURATION_PART_RE.match(body, pos)
        if not match:
            raise PaginationError("Invalid duration", {"step": raw})
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * timedelta(seconds=seconds)


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _parse_timestamp(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.strptime(str(value).strip(), DATE_TIME_LAYOUT)
    except ValueError:
        raise PaginationError(
            f"Pagination parameter '{name}' is neither an integer "
            f"nor a timestamp in the form {DATE_TIME_LAYOUT}",
            {"value": value},
        )


@dataclass
class RangeWindowPagination:
    """Walks ``[start, end]`` in windows of ``step``.

    Bounds are integers when start, end and step all parse as integers and
    timestamps (``YYYY-MM-DD HH:MM:SS``) otherwise. Each call emits
    ``(current, min(current + step, end))`` for ``{{start}}``/``{{end}}``.

    In integer mode the window stops advancing once ``current`` reaches
    ``end`` and ``(end, end)`` is repeated. In timestamp mode ``current`` still
    advances when it equals ``end``, so one window starting past ``end`` is
    produced and then repeated. Either way the reader stops on an empty or
    repeated page, not on the window.
    """

    query: str
    start: Any = None
    end: Any = None
    step: Any = None
    current_start: Union[int, datetime, None] = field(init=False, default=None)
    type: ClassVar[PaginationType] = PaginationType.BETWEEN

    @classmethod
    def from_params(
        cls, query: str, params: Optional[Mapping[str, Any]] = None
    ) -> "RangeWindowPagination":
        values = _params_lower(params)
        return cls(
            query=query,
            start=values.get("start"),
            end=values.get("end"),
            step=values.get("step"),
        )

    def reset(self) -> None:
        self.current_start = None

    def set_parameter(self, name: str, value: Any) -> None:
        key = name.lower()
        if key == "start":
            self.start = value
        elif key == "end":
            self.end = value
        elif key == "step":
            self.step = value

    def is_numeric(self) -> bool:
        return all(_parse_int(v) is not None for v in (self.start, self.end, self.step))

    def next_window(self) -> Tuple[str, str]:
        """Return the next ``(start, end)`` window as SQL-ready text."""
        if self.is_numeric():
            return self._next_int_window()
        return self._next_timestamp_window()

    def _next_int_window(self) -> Tuple[str, str]:
        step = _parse_int(self.step)
        end = _parse_int(self.end)
        if step <= 0:
            raise PaginationError("Range step must be positive", {"step": self.step})
        if not isinstance(self.current_start, int):
            self.current_start = _parse_int(self.start)
        current = self.current_start

        window_end = min(current + step, end)
        if current < end:
            self.current_start = current + step
        return str(current), str(window_end)

    def _next_timestamp_window(self) -> Tuple[str, str]:
        step = parse_duration(self.step)
        end = _parse_timestamp("end", self.end)
        if step <= timedelta():
            raise PaginationError("Range step must be positive", {"step": self.step})
        if not isinstance(self.current_start, datetime):
            self.current_start = _parse_timestamp("start", self.start)
        current = self.current_start

        window_end = min(current + step, end)
        if current <= end:
            self.current_start = current + step
        return (
            current.strftime(DATE_TIME_LAYOUT),
            window_end.strftime(DATE_TIME_LAYOUT),
        )

    def next_query_text(self) -> str:
        window_start, window_end = self.next_window()
        return (
            trim_query(self.query)
            .replace(START_PLACEHOLDER, window_start)
            .replace(END_PLACEHOLDER, window_end)
        )


PaginationStrategy = Union[
    SimplePagination,
    LimitOffsetPagination,
    OrderByCursorPagination,
    RangeWindowPagination,
]

_STRATEGIES = {
    PaginationType.SIMPLE: SimplePagination,
    PaginationType.LIMIT_OFFSET: LimitOffsetPagination,
    PaginationType.ORDER_BY_ID: OrderByCursorPagination,
    PaginationType.BETWEEN: RangeWindowPagination,
}


def create_strategy(
    query_type: Union[str, PaginationType, None],
    query: str,
    params: Optional[Mapping[str, Any]] = None,
) -> PaginationStrategy:
    """Build the pagination strategy for ``query_type``.

    Args:
        query_type: Type tag (``simple``, ``limitoffset``, ``orderbyid``,
            ``between``); unknown or empty tags build a simple strategy
        query: Base query text
        params: Initial parameters (``limit``, ``offset``, ``max_offset``,
            ``id``, ``start``, ``end``, ``step``); keys for other strategies
            are ignored

    Returns:
        A strategy in its initial state
    """
    if not isinstance(query_type, PaginationType):
        query_type = PaginationType.from_tag(query_type)
    strategy_cls = _STRATEGIES[query_type]
    strategy = strategy_cls.from_params(query, params)
    logger.debug(f"Created {query_type.value} pagination strategy: {strategy!r}")
    return strategy
