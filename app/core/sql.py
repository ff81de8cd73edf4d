# app/core/sql.py
"""
Relational execute contract and a small parameterized query builder.

Repositories talk to storage through `SqlExecutor.execute(sql, params)`,
which mirrors the `execute(sql, params) -> {results, meta}` RPC the admin
frontend used against the edge database. Statements use positional `?`
placeholders; every value is bound, identifiers only ever come from
constants in this codebase.

`SessionExecutor` commits each statement on its own. Two statements are
never wrapped in one transaction, so a multi-table write can be
interrupted halfway (see PostRepository.save).
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\?")


@dataclass
class ExecuteMeta:
    last_row_id: int | None = None
    rows_affected: int | None = None


@dataclass
class ExecuteResult:
    results: list[dict[str, Any]] = field(default_factory=list)
    meta: ExecuteMeta = field(default_factory=ExecuteMeta)


class SqlExecutor(Protocol):
    supports_returning: bool

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> ExecuteResult:
        ...


def _bind_positional(sql: str, params: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """
    Rewrite `?` placeholders to SQLAlchemy named binds (:p0, :p1, ...).
    """
    names: list[str] = []

    def repl(_match: re.Match) -> str:
        names.append(f"p{len(names)}")
        return f":{names[-1]}"

    bound_sql = _PLACEHOLDER.sub(repl, sql)
    if len(names) != len(params):
        raise ValueError(
            f"Statement has {len(names)} placeholders but {len(params)} params were given"
        )
    return bound_sql, dict(zip(names, params))


class SessionExecutor:
    """
    SqlExecutor backed by a SQLModel Session.

    - One statement == one commit.
    - Errors roll back the failed statement and propagate unchanged.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    def supports_returning(self) -> bool:
        bind = self.session.get_bind()
        return bool(getattr(bind.dialect, "insert_returning", False))

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> ExecuteResult:
        bound_sql, bind_params = _bind_positional(sql, list(params or []))
        logger.debug("execute: %s %s", sql, list(params or []))
        try:
            result = self.session.connection().execute(text(bound_sql), bind_params)
            rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
            meta = ExecuteMeta(
                last_row_id=getattr(result, "lastrowid", None),
                rows_affected=result.rowcount if result.rowcount >= 0 else None,
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return ExecuteResult(results=rows, meta=meta)


# ---------------------------------------------------------------------------
# Query builder
# ---------------------------------------------------------------------------


def quote_ident(name: str) -> str:
    """
    Double-quote an identifier.

    Column names such as ogImage / createdAt are camelCase; Postgres folds
    unquoted identifiers to lower case, so they are always quoted.
    """
    if "." in name:
        prefix, column = name.split(".", 1)
        return f"{prefix}.{quote_ident(column)}"
    return '"' + name.replace('"', '""') + '"'


def non_empty(values: dict[str, Any]) -> dict[str, Any]:
    """
    Keep only truthy values.

    Empty strings, None, 0 and empty containers are dropped, so an update
    built from the result never clears a stored value.
    """
    return {key: value for key, value in values.items() if value}


@dataclass
class InsertQuery:
    table: str
    values: dict[str, Any]
    returning: str | None = None

    def build(self) -> tuple[str, list[Any]]:
        if not self.values:
            raise ValueError("InsertQuery needs at least one column")
        columns = ", ".join(quote_ident(c) for c in self.values)
        placeholders = ", ".join("?" for _ in self.values)
        sql = f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"
        if self.returning:
            sql += f" RETURNING {quote_ident(self.returning)}"
        return sql, list(self.values.values())


@dataclass
class UpdateQuery:
    table: str
    values: dict[str, Any]
    where: dict[str, Any]

    def build(self) -> tuple[str, list[Any]]:
        if not self.values:
            raise ValueError("UpdateQuery needs at least one column to set")
        if not self.where:
            raise ValueError("UpdateQuery refuses to run without a WHERE clause")
        assignments = ", ".join(f"{quote_ident(c)} = ?" for c in self.values)
        predicates = " AND ".join(f"{quote_ident(c)} = ?" for c in self.where)
        sql = f"UPDATE {self.table} SET {assignments} WHERE {predicates}"
        return sql, [*self.values.values(), *self.where.values()]


class SelectQuery:
    """
    Fluent SELECT builder.

    Predicates are emitted in the order they were added, joined with AND.
    Bound params follow statement order: joins, predicates, limit.
    """

    def __init__(self, table: str, columns: Sequence[str]):
        self.table = table
        self.columns = list(columns)
        self._joins: list[tuple[str, list[Any]]] = []
        self._where: list[tuple[str, list[Any]]] = []
        self._order_by: list[str] = []
        self._limit: int | None = None

    def join(self, clause: str, *params: Any) -> "SelectQuery":
        self._joins.append((clause, list(params)))
        return self

    def where(self, clause: str, *params: Any) -> "SelectQuery":
        self._where.append((clause, list(params)))
        return self

    def order_by(self, *clauses: str) -> "SelectQuery":
        self._order_by.extend(clauses)
        return self

    def limit(self, value: int | None) -> "SelectQuery":
        self._limit = value
        return self

    def build(self) -> tuple[str, list[Any]]:
        params: list[Any] = []
        parts = [f"SELECT {', '.join(self.columns)} FROM {self.table}"]

        for clause, join_params in self._joins:
            parts.append(clause)
            params.extend(join_params)

        if self._where:
            parts.append("WHERE " + " AND ".join(clause for clause, _ in self._where))
            for _, where_params in self._where:
                params.extend(where_params)

        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))

        if self._limit:
            parts.append("LIMIT ?")
            params.append(self._limit)

        return " ".join(parts), params


def build_reorder_statement(
    post_ids: Sequence[int],
    post_type: str,
    updated_at: int,
) -> tuple[str, list[Any]]:
    """
    One UPDATE that rewrites display_order for a whole list.

    The id at index i gets display_order i + 1. Rows of another type are
    left alone even if their id is in the list.
    """
    if not post_ids:
        raise ValueError("post_ids must not be empty")

    cases = " ".join("WHEN ? THEN ?" for _ in post_ids)
    in_list = ", ".join("?" for _ in post_ids)
    sql = (
        f'UPDATE posts SET "display_order" = CASE "id" {cases} END, "updatedAt" = ? '
        f'WHERE "id" IN ({in_list}) AND "type" = ?'
    )
    params: list[Any] = []
    for index, post_id in enumerate(post_ids):
        params.extend([post_id, index + 1])
    params.append(updated_at)
    params.extend(post_ids)
    params.append(post_type)
    return sql, params
