"""SQL fragment builders shared by the repositories.

Both builders return an ``SqlFragment``: clause text with numbered
placeholders plus the values bound to them, in placeholder order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple, Optional, Sequence

from ..errors import ValidationError


@dataclass(frozen=True)
class Dialect:
    param_prefix: str
    ilike: str

    def param(self, idx: int) -> str:
        return f"{self.param_prefix}{idx}"


POSTGRES = Dialect(param_prefix="$", ilike="ILIKE")
# SQLite accepts ?NNN numbered params, and its LIKE is already case-insensitive for ASCII
SQLITE = Dialect(param_prefix="?", ilike="LIKE")


class SqlFragment(NamedTuple):
    clause: str
    values: list


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def sql_for_partial_update(
    data: Mapping[str, Any],
    field_map: Optional[Mapping[str, str]] = None,
    *,
    dialect: Dialect = POSTGRES,
    start: int = 1,
) -> SqlFragment:
    """Build the SET clause for a partial update.

    data      - fields to update {field: new value}, in the order they are numbered
    field_map - logical field name -> column name; unmapped names are used as-is

    Example:
        sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        -> SqlFragment('"first_name"=$1, "age"=$2', ["Aliya", 32])

    Raises ValidationError when data is empty.
    """
    if not data:
        raise ValidationError("No data")
    field_map = field_map or {}

    cols = [
        f"{quote_ident(field_map.get(key, key))}={dialect.param(start + idx)}"
        for idx, key in enumerate(data)
    ]
    return SqlFragment(", ".join(cols), list(data.values()))


@dataclass(frozen=True)
class ContainsText:
    """``column ILIKE $i`` bound to ``%value%``."""
    name: str
    column: str

    def render(self, value: Any, dialect: Dialect, idx: int):
        return f"{self.column} {dialect.ilike} {dialect.param(idx)}", [f"%{value}%"]


@dataclass(frozen=True)
class MinNumeric:
    name: str
    column: str

    def render(self, value: Any, dialect: Dialect, idx: int):
        return f"{self.column} >= {dialect.param(idx)}", [value]


@dataclass(frozen=True)
class BooleanFlag:
    """Static ``column > 0`` check; binds nothing, so it uses no placeholder."""
    name: str
    column: str

    def render(self, value: Any, dialect: Dialect, idx: int):
        return f"{self.column} > 0", []


class FilterBuilder:
    """Turns an optional filter spec into an AND-joined WHERE body.

    Filters are checked in declaration order, which fixes both the clause
    text and the placeholder numbering. A filter is applied only when its
    value is present and truthy: 0, "", False and None all mean "not
    requested", never "match zero/empty/false".
    """

    def __init__(self, filters: Sequence, dialect: Dialect = POSTGRES):
        self.filters = list(filters)
        self.dialect = dialect

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.filters]

    def build(self, filter_spec: Optional[Mapping[str, Any]] = None, start: int = 1) -> SqlFragment:
        parts: list[str] = []
        values: list = []
        if filter_spec:
            for f in self.filters:
                value = filter_spec.get(f.name)
                if not value:
                    continue
                sql, bound = f.render(value, self.dialect, start + len(values))
                parts.append(sql)
                values.extend(bound)
        return SqlFragment(" AND ".join(parts), values)

    def build_where(self, filter_spec: Optional[Mapping[str, Any]] = None, start: int = 1) -> SqlFragment:
        frag = self.build(filter_spec, start)
        if not frag.clause:
            return frag
        return SqlFragment(f"WHERE {frag.clause}", frag.values)
