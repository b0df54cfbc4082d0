from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from ..core.exceptions import ValidationError
from .query import Filter, Query

_OPERATORS = {"eq": "=", "gte": ">=", "lte": "<="}


def quote(name: str) -> str:
    return f"`{name}`"


def column_list(columns: str) -> str:
    if columns == "*":
        return "*"
    return ", ".join(quote(c.strip()) for c in columns.split(","))


def where_clause(filters: Sequence[Filter]) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    for f in filters:
        col = quote(f.column)
        if f.op == "is":
            if f.value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = %s")
                params.append(f.value)
        elif f.op == "in":
            if not f.value:
                clauses.append("1 = 0")
            else:
                clauses.append(f"{col} IN ({', '.join(['%s'] * len(f.value))})")
                params.extend(f.value)
        elif f.op in _OPERATORS:
            clauses.append(f"{col} {_OPERATORS[f.op]} %s")
            params.append(f.value)
        else:
            raise ValidationError(f"Unsupported filter operator: {f.op}")

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def select_sql(query: Query) -> Tuple[str, Tuple[Any, ...]]:
    where, params = where_clause(query.filters)
    sql = f"SELECT {column_list(query.columns)} FROM {quote(query.table)}{where}"
    if query.ordering:
        sql += " ORDER BY " + ", ".join(f"{quote(c)} {'ASC' if asc else 'DESC'}" for c, asc in query.ordering)
    limit, offset = query.window()
    if limit is not None:
        sql += " LIMIT %s OFFSET %s"
        params.extend([int(limit), int(offset)])
    elif offset:
        # MySQL has no OFFSET without LIMIT.
        sql += " LIMIT 18446744073709551615 OFFSET %s"
        params.append(int(offset))
    return sql, tuple(params)


def count_sql(query: Query) -> Tuple[str, Tuple[Any, ...]]:
    where, params = where_clause(query.filters)
    return f"SELECT COUNT(*) AS total FROM {quote(query.table)}{where}", tuple(params)


def insert_sql(table: str, rows: Sequence[Dict[str, Any]]) -> Tuple[str, Tuple[Any, ...]]:
    columns = list(rows[0].keys())
    for row in rows[1:]:
        if set(row.keys()) != set(columns):
            raise ValidationError("All inserted rows must have the same columns")

    placeholders = "(" + ", ".join(["%s"] * len(columns)) + ")"
    params: List[Any] = []
    for row in rows:
        params.extend(row[c] for c in columns)

    sql = (
        f"INSERT INTO {quote(table)} ({', '.join(quote(c) for c in columns)}) "
        f"VALUES {', '.join([placeholders] * len(rows))}"
    )
    return sql, tuple(params)


def update_sql(table: str, values: Dict[str, Any], ids: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
    assignments = ", ".join(f"{quote(c)} = %s" for c in values)
    id_marks = ", ".join(["%s"] * len(ids))
    sql = f"UPDATE {quote(table)} SET {assignments} WHERE `id` IN ({id_marks})"
    return sql, tuple(values.values()) + tuple(ids)


def select_by_ids_sql(table: str, columns: str, ids: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
    id_marks = ", ".join(["%s"] * len(ids))
    return f"SELECT {column_list(columns)} FROM {quote(table)} WHERE `id` IN ({id_marks})", tuple(ids)
