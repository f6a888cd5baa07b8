"""
Database abstraction for Postgres and an in-memory test implementation.

Both clients speak in plain row dicts keyed by column name and enforce the
constraints declared in ``cms.tables``.
"""

from __future__ import annotations

import copy
import re
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence

from sqlalchemy import (
    Table,
    UniqueConstraint,
    and_,
    create_engine,
    delete,
    event,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cms.tables import Base
from shared.time_utils import now_iso

OPERATORS = (
    "eq",
    "neq",
    "gt",
    "gte",
    "lt",
    "lte",
    "in",
    "is_null",
    "not_null",
    "ilike_any",
)


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class Order:
    field: str
    descending: bool = False


def eq(field: str, value) -> Filter:
    return Filter(field, "eq", value)


def neq(field: str, value) -> Filter:
    return Filter(field, "neq", value)


def gt(field: str, value) -> Filter:
    return Filter(field, "gt", value)


def gte(field: str, value) -> Filter:
    return Filter(field, "gte", value)


def lt(field: str, value) -> Filter:
    return Filter(field, "lt", value)


def lte(field: str, value) -> Filter:
    return Filter(field, "lte", value)


def in_(field: str, values: Iterable) -> Filter:
    return Filter(field, "in", tuple(values))


def is_null(field: str) -> Filter:
    return Filter(field, "is_null")


def not_null(field: str) -> Filter:
    return Filter(field, "not_null")


def ilike_any(fields: Sequence[str], term: str) -> Filter:
    """Case-insensitive substring match of ``term`` against any of ``fields``."""
    return Filter(",".join(fields), "ilike_any", (tuple(fields), term))


class IntegrityViolation(Exception):
    """A write broke a unique, foreign-key or not-null constraint."""

    def __init__(self, kind: str, column: Optional[str] = None, message: str = ""):
        self.kind = kind
        self.column = column
        super().__init__(message or f"{kind} violation on {column}")


class DbClient(Protocol):
    """Interface for database access."""

    def insert(self, table: str, values: dict) -> dict:
        ...

    def get(self, table: str, row_id: str) -> Optional[dict]:
        ...

    def find_one(self, table: str, filters: Sequence[Filter] = ()) -> Optional[dict]:
        ...

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        ...

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        ...

    def update(self, table: str, row_id: str, values: dict) -> Optional[dict]:
        ...

    def update_where(
        self, table: str, filters: Sequence[Filter], values: dict
    ) -> list[dict]:
        ...

    def delete_where(self, table: str, filters: Sequence[Filter]) -> list[dict]:
        ...


def _table(name: str) -> Table:
    try:
        return Base.metadata.tables[name]
    except KeyError:
        raise ValueError(f"Unknown table: {name}") from None


def _check_fields(table: Table, filters: Sequence[Filter], order_by: Sequence[Order] = ()):
    for item in filters:
        if item.op not in OPERATORS:
            raise ValueError(f"Unknown filter operator: {item.op}")
        fields = item.value[0] if item.op == "ilike_any" else (item.field,)
        for name in fields:
            if name not in table.c:
                raise ValueError(f"Unknown column {table.name}.{name}")
    for order in order_by:
        if order.field not in table.c:
            raise ValueError(f"Unknown column {table.name}.{order.field}")


def _column_default(column):
    default = column.default
    if default is None:
        return None
    if default.is_callable:
        return default.arg(None)
    if default.is_scalar:
        return copy.deepcopy(default.arg)
    return None


def _prepare_insert(table: Table, values: dict) -> dict:
    """Whitelist columns, assign id and timestamps, apply schema defaults."""
    row = {key: copy.deepcopy(value) for key, value in values.items() if key in table.c}
    if not row.get("id"):
        row["id"] = str(uuid.uuid4())
    stamp = now_iso()
    for column_name in ("created_at", "updated_at"):
        if column_name in table.c and not row.get(column_name):
            row[column_name] = stamp
    for column in table.columns:
        if row.get(column.name) is None:
            row[column.name] = _column_default(column)
    _check_not_null(table, row)
    return row


def _prepare_update(table: Table, values: dict) -> dict:
    changes = {
        key: copy.deepcopy(value)
        for key, value in values.items()
        if key in table.c and key not in ("id", "created_at")
    }
    if "updated_at" in table.c:
        changes["updated_at"] = now_iso()
    _check_not_null(table, changes, partial=True)
    return changes


def _check_not_null(table: Table, row: dict, partial: bool = False) -> None:
    for column in table.columns:
        if column.nullable or column.primary_key:
            continue
        if partial and column.name not in row:
            continue
        if row.get(column.name) is None:
            raise IntegrityViolation(
                "not_null", column.name, f"Missing required field: {column.name}"
            )


def _unique_column_sets(table: Table) -> list[tuple[str, ...]]:
    sets = [(column.name,) for column in table.columns if column.unique]
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            columns = tuple(column.name for column in constraint.columns)
            if columns not in sets:
                sets.append(columns)
    return sets


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, dict]] = {
            name: {} for name in Base.metadata.tables
        }

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        for rows in self.tables.values():
            rows.clear()

    # Matching -------------------------------------------------------------

    @staticmethod
    def _matches(row: dict, item: Filter) -> bool:
        if item.op == "ilike_any":
            fields, term = item.value
            needle = (term or "").lower()
            return any(
                isinstance(row.get(name), str) and needle in row[name].lower()
                for name in fields
            )
        value = row.get(item.field)
        if item.op == "is_null":
            return value is None
        if item.op == "not_null":
            return value is not None
        if item.op == "eq":
            return value == item.value
        if item.op == "neq":
            return value != item.value and value is not None
        if item.op == "in":
            return value in item.value
        if value is None or item.value is None:
            return False
        if item.op == "gt":
            return value > item.value
        if item.op == "gte":
            return value >= item.value
        if item.op == "lt":
            return value < item.value
        return value <= item.value

    def _filtered(self, table: str, filters: Sequence[Filter]) -> list[dict]:
        schema = _table(table)
        _check_fields(schema, filters)
        return [
            row
            for row in self.tables[table].values()
            if all(self._matches(row, item) for item in filters)
        ]

    # Constraints ----------------------------------------------------------

    def _check_unique(
        self,
        schema: Table,
        row: dict,
        exclude_id: Optional[str] = None,
        rows: Optional[Dict[str, dict]] = None,
    ):
        for columns in _unique_column_sets(schema):
            key = tuple(row.get(name) for name in columns)
            if any(value is None for value in key):
                continue
            for other in (self.tables[schema.name] if rows is None else rows).values():
                if other["id"] == exclude_id:
                    continue
                if tuple(other.get(name) for name in columns) == key:
                    raise IntegrityViolation(
                        "unique",
                        columns[0],
                        f"duplicate value for {schema.name}.{', '.join(columns)}",
                    )

    def _check_foreign_keys(self, schema: Table, row: dict):
        for column in schema.columns:
            value = row.get(column.name)
            if value is None:
                continue
            for fk in column.foreign_keys:
                target = fk.column.table.name
                if not any(
                    other.get(fk.column.name) == value
                    for other in self.tables[target].values()
                ):
                    raise IntegrityViolation(
                        "foreign_key",
                        column.name,
                        f"{schema.name}.{column.name} references missing {target} row",
                    )

    def _referencing(self, schema: Table):
        """(table, column, ondelete) for every foreign key pointing at ``schema``."""
        for other in Base.metadata.tables.values():
            for column in other.columns:
                for fk in column.foreign_keys:
                    if fk.column.table is schema:
                        yield other, column, (fk.ondelete or "").upper()

    def _collect_deletes(self, schema: Table, ids: set[str], plan: dict) -> None:
        plan.setdefault(schema.name, set()).update(ids)
        for other, column, ondelete in self._referencing(schema):
            children = {
                row["id"]
                for row in self.tables[other.name].values()
                if row.get(column.name) in ids
            }
            children -= plan.get(other.name, set())
            if not children:
                continue
            if ondelete == "CASCADE":
                self._collect_deletes(other, children, plan)
            elif ondelete != "SET NULL":
                raise IntegrityViolation(
                    "foreign_key",
                    column.name,
                    f"{other.name}.{column.name} still references {schema.name}",
                )

    # DbClient -------------------------------------------------------------

    def insert(self, table: str, values: dict) -> dict:
        schema = _table(table)
        row = _prepare_insert(schema, values)
        if row["id"] in self.tables[table]:
            raise IntegrityViolation("unique", "id", f"duplicate id in {table}")
        self._check_unique(schema, row)
        self._check_foreign_keys(schema, row)
        self.tables[table][row["id"]] = row
        return copy.deepcopy(row)

    def get(self, table: str, row_id: str) -> Optional[dict]:
        _table(table)
        row = self.tables[table].get(row_id)
        return copy.deepcopy(row) if row else None

    def find_one(self, table: str, filters: Sequence[Filter] = ()) -> Optional[dict]:
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        rows = self._filtered(table, filters)
        _check_fields(_table(table), (), order_by)
        # Stable sorts applied last-key-first give a multi-key ordering.
        for order in reversed(order_by):
            present = [row for row in rows if row.get(order.field) is not None]
            missing = [row for row in rows if row.get(order.field) is None]
            present.sort(key=lambda row: row[order.field], reverse=order.descending)
            rows = present + missing
        end = None if limit is None else offset + limit
        return [copy.deepcopy(row) for row in rows[offset:end]]

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        return len(self._filtered(table, filters))

    def update(self, table: str, row_id: str, values: dict) -> Optional[dict]:
        rows = self.update_where(table, [eq("id", row_id)], values)
        return rows[0] if rows else None

    def update_where(
        self, table: str, filters: Sequence[Filter], values: dict
    ) -> list[dict]:
        schema = _table(table)
        targets = self._filtered(table, filters)
        changes = _prepare_update(schema, values)
        updated = []
        # Later candidates are checked against earlier ones from the same batch.
        working = dict(self.tables[table])
        for row in targets:
            candidate = dict(row, **changes)
            self._check_unique(schema, candidate, exclude_id=row["id"], rows=working)
            working[row["id"]] = candidate
            self._check_foreign_keys(schema, candidate)
            updated.append(candidate)
        for row in updated:
            self.tables[table][row["id"]] = row
        return [copy.deepcopy(row) for row in updated]

    def delete_where(self, table: str, filters: Sequence[Filter]) -> list[dict]:
        schema = _table(table)
        targets = self._filtered(table, filters)
        if not targets:
            return []
        plan: dict[str, set[str]] = {}
        self._collect_deletes(schema, {row["id"] for row in targets}, plan)
        deleted = [copy.deepcopy(row) for row in targets]
        for name, ids in plan.items():
            for row_id in ids:
                self.tables[name].pop(row_id, None)
        # Dangling SET NULL references are cleared after the cascade settles.
        for name, ids in plan.items():
            for other, column, ondelete in self._referencing(_table(name)):
                if ondelete != "SET NULL":
                    continue
                for row in self.tables[other.name].values():
                    if row.get(column.name) in ids:
                        row[column.name] = None
        return deleted


_CONSTRAINT_COLUMN = re.compile(r"constraint failed: \w+\.(\w+)")


def _violation_from_error(exc: IntegrityError) -> IntegrityViolation:
    """Best-effort translation of driver errors (SQLite and psycopg) to a violation."""
    orig = exc.orig
    text = str(orig)
    lowered = text.lower()
    diag = getattr(orig, "diag", None)
    column = getattr(diag, "column_name", None) if diag else None
    constraint = getattr(diag, "constraint_name", None) if diag else None
    table = getattr(diag, "table_name", None) if diag else None

    if "foreign key" in lowered:
        kind = "foreign_key"
    elif "not null" in lowered or "not-null" in lowered:
        kind = "not_null"
    else:
        kind = "unique"

    if column is None:
        match = _CONSTRAINT_COLUMN.search(text)
        if match:
            column = match.group(1)
        elif constraint:
            name = constraint
            if table and name.startswith(f"{table}_"):
                name = name[len(table) + 1 :]
            column = re.sub(r"_(key|fkey)$", "", name)
    return IntegrityViolation(kind, column, text)


def _escape_like(term: str) -> str:
    """Match ``%`` and ``_`` literally, as the in-memory backend does."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _enable_sqlite_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        engine_kwargs = dict(future=True, pool_pre_ping=True, pool_recycle=1800)
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection so every thread sees the same database.
            engine_kwargs.update(
                poolclass=StaticPool, connect_args={"check_same_thread": False}
            )
        self.engine = create_engine(database_url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _clause(schema: Table, item: Filter):
        if item.op == "ilike_any":
            fields, term = item.value
            pattern = f"%{_escape_like(term or '')}%"
            return or_(*[schema.c[name].ilike(pattern, escape="\\") for name in fields])
        column = schema.c[item.field]
        if item.op == "eq":
            return column.is_(None) if item.value is None else column == item.value
        if item.op == "neq":
            return column != item.value
        if item.op == "gt":
            return column > item.value
        if item.op == "gte":
            return column >= item.value
        if item.op == "lt":
            return column < item.value
        if item.op == "lte":
            return column <= item.value
        if item.op == "in":
            return column.in_(list(item.value))
        if item.op == "is_null":
            return column.is_(None)
        return column.is_not(None)

    def _where(self, schema: Table, filters: Sequence[Filter]):
        _check_fields(schema, filters)
        return and_(True, *[self._clause(schema, item) for item in filters])

    def _execute(self, stmt) -> None:
        with self.Session() as session:
            try:
                session.execute(stmt)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise _violation_from_error(exc) from exc

    def insert(self, table: str, values: dict) -> dict:
        schema = _table(table)
        row = _prepare_insert(schema, values)
        self._execute(insert(schema).values(**row))
        return self.get(table, row["id"])

    def get(self, table: str, row_id: str) -> Optional[dict]:
        return self.find_one(table, [eq("id", row_id)])

    def find_one(self, table: str, filters: Sequence[Filter] = ()) -> Optional[dict]:
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        schema = _table(table)
        _check_fields(schema, (), order_by)
        stmt = select(schema).where(self._where(schema, filters))
        for order in order_by:
            column = schema.c[order.field]
            clause = column.desc() if order.descending else column.asc()
            stmt = stmt.order_by(clause.nulls_last())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        schema = _table(table)
        stmt = select(func.count()).select_from(schema).where(self._where(schema, filters))
        with self.Session() as session:
            return session.execute(stmt).scalar_one()

    def update(self, table: str, row_id: str, values: dict) -> Optional[dict]:
        rows = self.update_where(table, [eq("id", row_id)], values)
        return rows[0] if rows else None

    def update_where(
        self, table: str, filters: Sequence[Filter], values: dict
    ) -> list[dict]:
        schema = _table(table)
        changes = _prepare_update(schema, values)
        ids = [row["id"] for row in self.select(table, filters)]
        if not ids:
            return []
        self._execute(update(schema).where(schema.c.id.in_(ids)).values(**changes))
        return self.select(table, [in_("id", ids)])

    def delete_where(self, table: str, filters: Sequence[Filter]) -> list[dict]:
        schema = _table(table)
        rows = self.select(table, filters)
        if not rows:
            return []
        self._execute(delete(schema).where(schema.c.id.in_([row["id"] for row in rows])))
        return rows
