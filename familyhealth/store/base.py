"""
Table store protocol and the fluent query builder used by every service.

Design:
- ``TableStore`` is a Protocol (structural typing, easy to fake in tests).
- Every operation returns ``Result[list[dict], StoreError]`` and never raises
  for remote failures.
- ``TableQuery`` gives services a select/insert/update/upsert/delete chain with
  equality and range filters, ordering, limits and single-row extraction.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Protocol

from familyhealth.errors import ROW_NOT_FOUND, StoreError
from familyhealth.store.result import Result

Row = dict[str, Any]
FilterOp = Literal["eq", "neq", "gt", "gte", "lt", "lte"]
Action = Literal["select", "insert", "update", "upsert", "delete"]


@dataclass(frozen=True)
class Filter:
    """A single ``column <op> value`` condition."""

    column: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True


def normalize_value(value: Any) -> Any:
    """Convert Python values into the JSON-ish shape rows are stored in."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


class TableStore(Protocol):
    """
    Generic table query interface of the hosted backend.

    Implementations: ``PostgrestStore`` (remote) and ``InMemoryStore``.
    """

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> Result[list[Row], StoreError]: ...

    async def insert(self, table: str, rows: Sequence[Row]) -> Result[list[Row], StoreError]: ...

    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]: ...

    async def upsert(
        self, table: str, rows: Sequence[Row], *, on_conflict: str | None = None
    ) -> Result[list[Row], StoreError]: ...

    async def delete(
        self, table: str, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]: ...


def row_not_found(count: int) -> StoreError:
    return StoreError(
        "JSON object requested, multiple (or no) rows returned",
        code=ROW_NOT_FOUND,
        details=f"The result contains {count} rows",
        status=406,
    )


class TableQuery:
    """
    Fluent builder over a TableStore, one request per ``execute()``.

    >>> await table(store, "vitals_logs").select().eq("user_id", uid).limit(10).execute()
    """

    def __init__(self, store: TableStore, name: str) -> None:
        self._store = store
        self._table = name
        self._action: Action = "select"
        self._columns = "*"
        self._payload: list[Row] = []
        self._values: Row = {}
        self._on_conflict: str | None = None
        self._filters: list[Filter] = []
        self._order: list[OrderBy] = []
        self._limit: int | None = None
        self._single: Literal["none", "single", "maybe"] = "none"

    # -- actions ---------------------------------------------------------

    def select(self, columns: str = "*") -> "TableQuery":
        self._action = "select"
        self._columns = columns
        return self

    def insert(self, rows: Row | Sequence[Row]) -> "TableQuery":
        self._action = "insert"
        self._payload = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def update(self, values: Row) -> "TableQuery":
        self._action = "update"
        self._values = dict(values)
        return self

    def upsert(self, rows: Row | Sequence[Row], on_conflict: str | None = None) -> "TableQuery":
        self._action = "upsert"
        self._payload = [rows] if isinstance(rows, dict) else list(rows)
        self._on_conflict = on_conflict
        return self

    def delete(self) -> "TableQuery":
        self._action = "delete"
        return self

    # -- filters and modifiers --------------------------------------------

    def _filter(self, column: str, op: FilterOp, value: Any) -> "TableQuery":
        self._filters.append(Filter(column, op, normalize_value(value)))
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "lte", value)

    def order(self, column: str, *, ascending: bool = True) -> "TableQuery":
        self._order.append(OrderBy(column, ascending))
        return self

    def limit(self, count: int) -> "TableQuery":
        if count <= 0:
            raise ValueError("limit must be positive")
        self._limit = count
        return self

    def single(self) -> "TableQuery":
        """Expect exactly one row; zero or many is a row-not-found error."""
        self._single = "single"
        return self

    def maybe_single(self) -> "TableQuery":
        """Expect zero or one row; zero yields an Ok(None)."""
        self._single = "maybe"
        return self

    # -- execution ----------------------------------------------------------

    async def _run(self) -> Result[list[Row], StoreError]:
        if self._action == "select":
            return await self._store.select(
                self._table,
                columns=self._columns,
                filters=self._filters,
                order=self._order,
                limit=self._limit,
            )
        if self._action == "insert":
            return await self._store.insert(self._table, _normalize_rows(self._payload))
        if self._action == "update":
            values = {k: normalize_value(v) for k, v in self._values.items()}
            return await self._store.update(self._table, values, filters=self._filters)
        if self._action == "upsert":
            return await self._store.upsert(
                self._table, _normalize_rows(self._payload), on_conflict=self._on_conflict
            )
        return await self._store.delete(self._table, filters=self._filters)

    async def execute(self) -> Result[Any, StoreError]:
        result = await self._run()
        if result.is_err() or self._single == "none":
            return result

        rows = result.unwrap()
        if len(rows) == 1:
            return Result.ok(rows[0])
        if not rows and self._single == "maybe":
            return Result.ok(None)
        return Result.err(row_not_found(len(rows)))


def _normalize_rows(rows: list[Row]) -> list[Row]:
    return [{k: normalize_value(v) for k, v in row.items()} for row in rows]


def table(store: TableStore, name: str) -> TableQuery:
    """Start a query against ``name``."""
    return TableQuery(store, name)
