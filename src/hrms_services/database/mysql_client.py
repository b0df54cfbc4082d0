from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Sequence

from ..core.exceptions import ValidationError
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone
from .query import DataClient, Query, QueryResult, validate_identifier
from .sql_builder import count_sql, insert_sql, select_by_ids_sql, select_sql, update_sql

logger = logging.getLogger(__name__)


class MySQLDataClient(DataClient):
    """Runs `Query` objects against MySQL through mysql-connector.

    One short-lived connection per call; multi-statement calls (insert then
    read back, update then read back) share one transaction. Row ids are
    UUID strings generated here when the caller does not supply them.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def run(self, query: Query) -> QueryResult:
        if query.action == "select":
            return self._select(query)
        if query.action == "insert":
            return self._insert(query)
        if query.action == "update":
            return self._update(query)
        raise ValidationError(f"Unsupported query action: {query.action}")

    def rpc(self, name: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        validate_identifier(name)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.callproc(name, tuple(params.values()))
            for result in cur.stored_results():
                columns = list(result.column_names)
                return [dict(zip(columns, row)) for row in result.fetchall()]
        return []

    def _select(self, query: Query) -> QueryResult:
        sql, params = select_sql(query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            rows = fetchall(cur)
            count = None
            if query.with_count:
                sql, params = count_sql(query)
                cur.execute(sql, params)
                count = int((fetchone(cur) or {}).get("total") or 0)
        return QueryResult(data=rows, count=count)

    def _insert(self, query: Query) -> QueryResult:
        rows = [dict(r) for r in query.payload or []]
        if not rows:
            return QueryResult(data=[])
        for row in rows:
            row.setdefault("id", str(uuid.uuid4()))
        ids = [row["id"] for row in rows]

        with db_cursor(self._conn_factory) as (_, cur):
            sql, params = insert_sql(query.table, rows)
            cur.execute(sql, params)
            logger.debug("inserted %d row(s) into %s", cur.rowcount, query.table)
            inserted = self._read_back(cur, query, ids)
        return QueryResult(data=inserted)

    def _update(self, query: Query) -> QueryResult:
        where_only = Query(self, query.table).select("id")
        where_only.filters = list(query.filters)

        with db_cursor(self._conn_factory) as (_, cur):
            sql, params = select_sql(where_only)
            cur.execute(sql, params)
            ids = [r["id"] for r in fetchall(cur)]
            if not ids:
                return QueryResult(data=[])
            sql, params = update_sql(query.table, query.payload, ids)
            cur.execute(sql, params)
            updated = self._read_back(cur, query, ids)
        return QueryResult(data=updated)

    def _read_back(self, cur, query: Query, ids: Sequence[Any]) -> List[Dict[str, Any]]:
        sql, params = select_by_ids_sql(query.table, query.columns, ids)
        cur.execute(sql, params)
        rows = fetchall(cur)
        position = {row_id: i for i, row_id in enumerate(ids)}
        return sorted(rows, key=lambda r: position.get(r.get("id"), len(position)))
