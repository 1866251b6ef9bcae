"""
In-process TableStore used by tests and the demo walkthrough.

Mimics the remote store closely enough for the services: generated ``id``,
``created_at``/``updated_at`` columns, upsert on conflict columns, ``None``
sorted last, and injectable failures per table.
"""

import copy
import uuid
from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from familyhealth.errors import StoreError
from familyhealth.store.base import Filter, OrderBy, Row
from familyhealth.store.result import Result

logger = structlog.get_logger(__name__)


def _comparable(value: Any) -> Any:
    # ISO dates and timestamps ("Z" or "+00:00") compare as UTC datetimes
    if not isinstance(value, str):
        return value
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _matches(row: Row, flt: Filter) -> bool:
    current = row.get(flt.column)
    if flt.op == "eq":
        return current == flt.value
    if flt.op == "neq":
        return current != flt.value
    if current is None or flt.value is None:
        return False
    current, value = _comparable(current), _comparable(flt.value)
    try:
        if flt.op == "gt":
            return current > value
        if flt.op == "gte":
            return current >= value
        if flt.op == "lt":
            return current < value
        return current <= value
    except TypeError:
        return False


def _sort(rows: list[Row], order: Sequence[OrderBy]) -> list[Row]:
    for ordering in reversed(order):
        present = [r for r in rows if r.get(ordering.column) is not None]
        missing = [r for r in rows if r.get(ordering.column) is None]
        present.sort(key=lambda r: r[ordering.column], reverse=not ordering.ascending)
        rows = present + missing
    return rows


def _project(row: Row, columns: str) -> Row:
    if columns.strip() == "*":
        return copy.deepcopy(row)
    wanted = [c.strip() for c in columns.split(",") if c.strip()]
    return {c: copy.deepcopy(row.get(c)) for c in wanted}


class InMemoryStore:
    """Dictionary-backed implementation of the TableStore protocol."""

    def __init__(self, tables: dict[str, list[Row]] | None = None) -> None:
        self._tables: dict[str, list[Row]] = defaultdict(list)
        self._failures: dict[str, StoreError] = {}
        self._last_timestamp = datetime.now(UTC)
        self.logger = logger.bind(component="in_memory_store")
        for name, rows in (tables or {}).items():
            self._tables[name] = [self._stamp(dict(r), new=True) for r in rows]

    # -- test helpers -----------------------------------------------------

    def fail_table(self, table: str, error: StoreError | None = None) -> None:
        """Make every subsequent call against ``table`` fail."""
        self._failures[table] = error or StoreError("simulated store failure", code="XX000")

    def heal_table(self, table: str) -> None:
        self._failures.pop(table, None)

    def rows(self, table: str) -> list[Row]:
        return copy.deepcopy(self._tables.get(table, []))

    # -- internals ----------------------------------------------------------

    def _now(self) -> str:
        # Strictly increasing so created_at ordering is deterministic.
        now = datetime.now(UTC)
        if now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat()

    def _stamp(self, row: Row, *, new: bool) -> Row:
        now = self._now()
        if new:
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", now)
        row["updated_at"] = now
        return row

    def _check(self, table: str) -> StoreError | None:
        error = self._failures.get(table)
        if error is not None:
            self.logger.warning("simulated_failure", table=table, code=error.code)
        return error

    def _find(self, table: str, filters: Sequence[Filter]) -> list[Row]:
        return [r for r in self._tables[table] if all(_matches(r, f) for f in filters)]

    # -- TableStore -----------------------------------------------------------

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> Result[list[Row], StoreError]:
        if error := self._check(table):
            return Result.err(error)
        rows = _sort(self._find(table, filters), order)
        if limit is not None:
            rows = rows[:limit]
        return Result.ok([_project(r, columns) for r in rows])

    async def insert(self, table: str, rows: Sequence[Row]) -> Result[list[Row], StoreError]:
        if error := self._check(table):
            return Result.err(error)
        created = []
        for row in rows:
            stored = self._stamp(copy.deepcopy(dict(row)), new=True)
            if any(r["id"] == stored["id"] for r in self._tables[table]):
                return Result.err(
                    StoreError(
                        "duplicate key value violates unique constraint",
                        code="23505",
                        details=f"Key (id)=({stored['id']}) already exists.",
                        status=409,
                    )
                )
            self._tables[table].append(stored)
            created.append(copy.deepcopy(stored))
        return Result.ok(created)

    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]:
        if error := self._check(table):
            return Result.err(error)
        updated = []
        for row in self._find(table, filters):
            row.update(copy.deepcopy(values))
            self._stamp(row, new=False)
            updated.append(copy.deepcopy(row))
        return Result.ok(updated)

    async def upsert(
        self, table: str, rows: Sequence[Row], *, on_conflict: str | None = None
    ) -> Result[list[Row], StoreError]:
        if error := self._check(table):
            return Result.err(error)
        keys = [k.strip() for k in (on_conflict or "id").split(",") if k.strip()]
        result: list[Row] = []
        for row in rows:
            existing = None
            if all(k in row for k in keys):
                existing = next(
                    (r for r in self._tables[table] if all(r.get(k) == row[k] for k in keys)),
                    None,
                )
            if existing is not None:
                existing.update(copy.deepcopy(dict(row)))
                self._stamp(existing, new=False)
                result.append(copy.deepcopy(existing))
            else:
                stored = self._stamp(copy.deepcopy(dict(row)), new=True)
                self._tables[table].append(stored)
                result.append(copy.deepcopy(stored))
        return Result.ok(result)

    async def delete(
        self, table: str, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]:
        if error := self._check(table):
            return Result.err(error)
        doomed = self._find(table, filters)
        self._tables[table] = [r for r in self._tables[table] if r not in doomed]
        return Result.ok([copy.deepcopy(r) for r in doomed])


def seed(store: InMemoryStore, table: str, rows: list[dict[str, Any]]) -> None:
    """Load fixture rows directly, bypassing failure injection."""
    for row in rows:
        store._tables[table].append(store._stamp(dict(row), new=True))
