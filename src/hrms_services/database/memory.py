from __future__ import annotations

import copy
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..core.constants import PAYROLL_TABLE
from ..core.exceptions import ConstraintViolationError, NotFoundError, RemoteError, ValidationError
from .query import DataClient, Filter, Query, QueryResult, validate_identifier

Procedure = Callable[["InMemoryDataClient", Mapping[str, Any]], List[Dict[str, Any]]]


def calculate_payroll_procedure(client: "InMemoryDataClient", params: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Stand-in for the `calculate_payroll` stored procedure."""
    rows = client.rows(
        PAYROLL_TABLE,
        [
            Filter("user_id", "eq", params.get("user_id")),
            Filter("month", "eq", params.get("month")),
            Filter("year", "eq", params.get("year")),
        ],
    )
    if not rows:
        raise NotFoundError(
            f"No payroll for user {params.get('user_id')} in {params.get('month')}/{params.get('year')}"
        )
    row = rows[0]
    base = float(row.get("base_salary") or 0)
    deductions = float(row.get("deductions") or 0)
    return [{"base_salary": base, "deductions": deductions, "net_salary": base - deductions}]


class InMemoryDataClient(DataClient):
    """Dict-backed data client with the same contract as the MySQL one.

    Used for local development (`DB_BACKEND=memory`) and tests. Every call
    is appended to `history` as `(action, table)`.
    """

    def __init__(
        self,
        tables: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None,
        *,
        procedures: Optional[Mapping[str, Procedure]] = None,
    ):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        for name, rows in (tables or {}).items():
            self._tables[validate_identifier(name)] = [dict(r) for r in rows]
        self._procedures: Dict[str, Procedure] = {"calculate_payroll": calculate_payroll_procedure}
        self._procedures.update(procedures or {})
        self.history: List[Tuple[str, str]] = []

    def rows(self, table: str, filters: Iterable[Filter] = ()) -> List[Dict[str, Any]]:
        filters = list(filters)
        return [copy.deepcopy(r) for r in self._tables.get(table, []) if all(f.matches(r) for f in filters)]

    def writes(self) -> List[Tuple[str, str]]:
        return [h for h in self.history if h[0] in ("insert", "update")]

    def run(self, query: Query) -> QueryResult:
        self.history.append((query.action, query.table))
        if query.action == "select":
            return self._select(query)
        if query.action == "insert":
            return self._insert(query)
        if query.action == "update":
            return self._update(query)
        raise ValidationError(f"Unsupported query action: {query.action}")

    def rpc(self, name: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        self.history.append(("rpc", name))
        procedure = self._procedures.get(name)
        if procedure is None:
            raise RemoteError(f"Unknown procedure: {name}")
        return procedure(self, params)

    def _select(self, query: Query) -> QueryResult:
        matched = self.rows(query.table, query.filters)
        count = len(matched) if query.with_count else None

        for column, ascending in reversed(query.ordering):
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=not ascending)
            matched = present + missing

        limit, offset = query.window()
        matched = matched[offset:] if limit is None else matched[offset : offset + limit]
        return QueryResult(data=[_project(r, query.columns) for r in matched], count=count)

    def _insert(self, query: Query) -> QueryResult:
        stored = self._tables.setdefault(query.table, [])
        taken = {r.get("id") for r in stored}
        rows = []
        for row in query.payload or []:
            row = dict(row)
            row.setdefault("id", str(uuid.uuid4()))
            if row["id"] in taken:
                raise ConstraintViolationError(f"Duplicate id {row['id']} in {query.table}")
            taken.add(row["id"])
            rows.append(row)

        stored.extend(rows)
        return QueryResult(data=[_project(copy.deepcopy(r), query.columns) for r in rows])

    def _update(self, query: Query) -> QueryResult:
        updated = []
        for row in self._tables.get(query.table, []):
            if all(f.matches(row) for f in query.filters):
                row.update(query.payload)
                updated.append(_project(copy.deepcopy(row), query.columns))
        return QueryResult(data=updated)


def _project(row: Dict[str, Any], columns: str) -> Dict[str, Any]:
    if columns == "*":
        return row
    return {c.strip(): row.get(c.strip()) for c in columns.split(",")}
