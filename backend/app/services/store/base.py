from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


PROFILE_PREFIX = "profiles."


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    @property
    def is_profile_column(self) -> bool:
        return self.column.startswith(PROFILE_PREFIX)


@dataclass
class Query:
    """Backend-neutral read: predicates, one ordering column, offset/limit.

    Columns of the joined profile are addressed as ``profiles.<column>``.
    Builder methods mutate and return the query so calls chain.
    """

    table: str
    filters: list[Filter] = field(default_factory=list)
    profile_columns: tuple[str, ...] = ()
    order_by: str | None = None
    descending: bool = False
    offset: int | None = None
    limit: int | None = None
    count: bool = False

    def _add(self, column: str, op: str, value: Any) -> "Query":
        if isinstance(value, date):
            value = value.isoformat()
        self.filters.append(Filter(column=column, op=op, value=value))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._add(column, "eq", value)

    def gte(self, column: str, value: Any) -> "Query":
        return self._add(column, "gte", value)

    def lte(self, column: str, value: Any) -> "Query":
        return self._add(column, "lte", value)

    def ilike(self, column: str, pattern: str) -> "Query":
        return self._add(column, "ilike", pattern)

    def join_profiles(self, *columns: str) -> "Query":
        self.profile_columns = tuple(columns or ("email",))
        return self

    def order(self, column: str, *, descending: bool = False) -> "Query":
        self.order_by = column
        self.descending = descending
        return self

    def range(self, offset: int, limit: int) -> "Query":
        self.offset = max(0, int(offset))
        self.limit = max(1, int(limit))
        return self

    def with_count(self) -> "Query":
        self.count = True
        return self

    @property
    def joins_profiles(self) -> bool:
        return bool(self.profile_columns) or any(f.is_profile_column for f in self.filters)


LIKE_ESCAPE = "\\"


def substring_pattern(value: str) -> str:
    """ILIKE pattern matching ``value`` literally anywhere in the column."""
    text = (value or "").strip()
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"


@dataclass
class QueryResult:
    rows: list[dict[str, Any]]
    total: int | None = None


class DataStore:
    """Filtered reads and single-row mutations against profiles, time_logs and audit_logs."""

    name = "abstract"

    def select(self, query: Query) -> QueryResult:
        raise NotImplementedError

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def update(self, table: str, row_id: str, values: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def delete(self, table: str, row_id: str) -> None:
        raise NotImplementedError
