from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..common.datetime_utils import ensure_utc
from ..core.exceptions import NotFoundError, RemoteError, ValidationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    if not name or not _IDENTIFIER.match(name):
        raise ValidationError(f"Invalid identifier: {name!r}")
    return name


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = _comparable(row.get(self.column))
        target = _comparable(self.value)
        if self.op == "is":
            return current is None if target is None else current == target
        if self.op == "in":
            return current in {_comparable(v) for v in target}
        if current is None:
            return False
        if self.op == "eq":
            return current == target
        if self.op == "gte":
            return current >= target
        if self.op == "lte":
            return current <= target
        raise ValidationError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class QueryResult:
    data: List[Dict[str, Any]] = field(default_factory=list)
    count: Optional[int] = None


class Query:
    """Chainable description of one data-store call.

    Built through `client.table(name)` and run with `execute()`, `single()`
    or `maybe_single()`; the owning client decides how to run it.
    """

    def __init__(self, client: "DataClient", table: str):
        self._client = client
        self.table = validate_identifier(table)
        self.action = "select"
        self.columns = "*"
        self.with_count = False
        self.payload: Any = None
        self.filters: List[Filter] = []
        self.ordering: List[Tuple[str, bool]] = []
        self.row_limit: Optional[int] = None
        self.row_range: Optional[Tuple[int, int]] = None

    def select(self, columns: str = "*", *, count: bool = False) -> "Query":
        if columns != "*":
            for col in columns.split(","):
                validate_identifier(col.strip())
        self.columns = columns
        self.with_count = count
        return self

    def insert(self, rows: Sequence[Mapping[str, Any]]) -> "Query":
        rows = [dict(r) for r in rows]
        for row in rows:
            for col in row:
                validate_identifier(col)
        self.action = "insert"
        self.payload = rows
        return self

    def update(self, values: Mapping[str, Any]) -> "Query":
        if not values:
            raise ValidationError("Nothing to update")
        for col in values:
            validate_identifier(col)
        self.action = "update"
        self.payload = dict(values)
        return self

    def _where(self, column: str, op: str, value: Any) -> "Query":
        self.filters.append(Filter(validate_identifier(column), op, value))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._where(column, "eq", value)

    def gte(self, column: str, value: Any) -> "Query":
        return self._where(column, "gte", value)

    def lte(self, column: str, value: Any) -> "Query":
        return self._where(column, "lte", value)

    def is_(self, column: str, value: Any) -> "Query":
        return self._where(column, "is", value)

    def in_(self, column: str, values: Sequence[Any]) -> "Query":
        return self._where(column, "in", list(values))

    def order(self, column: str, *, ascending: bool = True) -> "Query":
        self.ordering.append((validate_identifier(column), bool(ascending)))
        return self

    def limit(self, n: int) -> "Query":
        self.row_limit = int(n)
        return self

    def range(self, start: int, end: int) -> "Query":
        if start < 0 or end < start:
            raise ValidationError(f"Invalid range {start}..{end}")
        self.row_range = (int(start), int(end))
        return self

    def window(self) -> Tuple[Optional[int], int]:
        """(limit, offset) after combining `range()` and `limit()`."""
        offset = 0
        limit = self.row_limit
        if self.row_range is not None:
            offset = self.row_range[0]
            span = self.row_range[1] - self.row_range[0] + 1
            limit = span if limit is None else min(limit, span)
        return limit, offset

    def execute(self) -> QueryResult:
        return self._client.run(self)

    def single(self) -> Dict[str, Any]:
        rows = self.execute().data
        if not rows:
            raise NotFoundError(f"No {self.table} row matched")
        if len(rows) > 1:
            raise RemoteError(f"Expected one {self.table} row, got {len(rows)}")
        return rows[0]

    def maybe_single(self) -> Optional[Dict[str, Any]]:
        rows = self.execute().data
        if len(rows) > 1:
            raise RemoteError(f"Expected at most one {self.table} row, got {len(rows)}")
        return rows[0] if rows else None

    def __repr__(self) -> str:
        return f"<Query {self.action} {self.table} filters={len(self.filters)}>"


class DataClient(Protocol):
    def table(self, name: str) -> Query:
        return Query(self, name)

    def run(self, query: Query) -> QueryResult:
        raise NotImplementedError

    def rpc(self, name: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Call a stored procedure and return its first result set."""

        raise NotImplementedError
