from __future__ import annotations

from sqlite3 import Connection
from typing import Any, Callable, Mapping, Optional, Sequence

from ..db import run
from ..errors import DuplicateError, NotFoundError, StorageError, ValidationError
from .sql import SQLITE, Dialect, FilterBuilder, quote_ident, sql_for_partial_update

Executor = Callable[[Connection, str, Sequence[Any]], list]


class EntityRepository:
    """Generic single-table CRUD built on the fragment builders.

    Subclasses declare the table and its fields; every operation is a
    single statement, so each relies on the engine's per-statement atomicity.
    Records are plain dicts keyed by logical field name.
    """

    entity: str = "record"
    table: str = ""
    # logical names, in SELECT/RETURNING order; "id" first
    fields: Sequence[str] = ("id",)
    # logical -> column, identity for anything missing
    field_map: Mapping[str, str] = {}
    # fields accepted by create(), all inserted
    insert_fields: Sequence[str] = ()
    # business key checked before insert
    key_fields: Sequence[str] = ()
    # key field -> SQL type it is compared as, e.g. decimals kept as text
    key_casts: Mapping[str, str] = {}
    # None means every non-id field may be updated
    updatable: Optional[Sequence[str]] = None
    filters: Sequence = ()
    order_by: str = "id"
    dialect: Dialect = SQLITE

    def __init__(self, conn: Connection, execute: Executor = run):
        self.conn = conn
        self.execute = execute
        self.filter_builder = FilterBuilder(self.filters, self.dialect)

    def column(self, name: str) -> str:
        return self.field_map.get(name, name)

    def _select_list(self) -> str:
        out = []
        for f in self.fields:
            col = self.column(f)
            out.append(col if col == f else f"{col} AS {quote_ident(f)}")
        return ", ".join(out)

    def _param(self, idx: int) -> str:
        return self.dialect.param(idx)

    def _key_match(self, name: str, idx: int) -> str:
        col, param = self.column(name), self._param(idx)
        cast = self.key_casts.get(name)
        if cast:
            return f"CAST({col} AS {cast}) = CAST({param} AS {cast})"
        return f"{col} = {param}"

    def _describe(self, fields: Mapping[str, Any]) -> str:
        return ", ".join(str(fields.get(k)) for k in self.key_fields)

    def create(self, fields: Mapping[str, Any]) -> dict:
        """Insert a new row and return it including its generated id.

        Raises DuplicateError when a row with the same business key exists,
        whether found by the pre-check or reported by the unique index.
        """
        unknown = [k for k in fields if k not in self.insert_fields]
        if unknown:
            raise ValidationError(f"Unknown {self.entity} field(s): {', '.join(unknown)}")

        if self.key_fields:
            where = " AND ".join(
                self._key_match(k, i) for i, k in enumerate(self.key_fields, 1)
            )
            dup = self.execute(
                self.conn,
                f"SELECT id FROM {self.table} WHERE {where}",
                [fields.get(k) for k in self.key_fields],
            )
            if dup:
                raise DuplicateError(f"Duplicate {self.entity}: {self._describe(fields)}")

        cols = ", ".join(self.column(k) for k in self.insert_fields)
        marks = ", ".join(self._param(i) for i in range(1, len(self.insert_fields) + 1))
        sql = (
            f"INSERT INTO {self.table} ({cols}) VALUES ({marks}) "
            f"RETURNING {self._select_list()}"
        )
        try:
            rows = self.execute(self.conn, sql, [fields.get(k) for k in self.insert_fields])
        except StorageError as e:
            if e.is_unique_violation:
                raise DuplicateError(f"Duplicate {self.entity}: {self._describe(fields)}") from e
            raise
        return rows[0]

    def find_all(self, filter_spec: Optional[Mapping[str, Any]] = None) -> list[dict]:
        where, values = self.filter_builder.build_where(filter_spec)
        sql = f"SELECT {self._select_list()} FROM {self.table}"
        if where:
            sql += f" {where}"
        sql += f" ORDER BY {self.order_by}"
        return self.execute(self.conn, sql, values)

    def get(self, id: int) -> dict:
        rows = self.execute(
            self.conn,
            f"SELECT {self._select_list()} FROM {self.table} WHERE id = {self._param(1)}",
            [id],
        )
        if not rows:
            raise NotFoundError(f"No {self.entity}: {id}")
        return rows[0]

    def update(self, id: int, data: Mapping[str, Any]) -> dict:
        """Partial update: only the supplied fields change, None writes NULL.

        Raises ValidationError (before touching storage) for empty data or
        fields that may not be updated, NotFoundError when no row has this id.
        """
        allowed = self.updatable if self.updatable is not None else [f for f in self.fields if f != "id"]
        unknown = [k for k in data if k not in allowed]
        if unknown:
            raise ValidationError(f"Cannot update {self.entity} field(s): {', '.join(unknown)}")

        set_cols, values = sql_for_partial_update(data, self.field_map, dialect=self.dialect)
        id_idx = self._param(len(values) + 1)
        sql = (
            f"UPDATE {self.table} SET {set_cols} WHERE id = {id_idx} "
            f"RETURNING {self._select_list()}"
        )
        rows = self.execute(self.conn, sql, [*values, id])
        if not rows:
            raise NotFoundError(f"No {self.entity}: {id}")
        return rows[0]

    def remove(self, id: int) -> int:
        rows = self.execute(
            self.conn,
            f"DELETE FROM {self.table} WHERE id = {self._param(1)} RETURNING id",
            [id],
        )
        if not rows:
            raise NotFoundError(f"No {self.entity}: {id}")
        return rows[0]["id"]
