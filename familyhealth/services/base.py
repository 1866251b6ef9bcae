"""
Shared plumbing for the feature services.

Every service method follows the same shape: validate identifiers, issue one
store request, parse rows into domain models. Store and validation failures
are logged (sanitised) and re-raised as a generic ``ServiceError``.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel

from familyhealth.domain.models import SERVER_COLUMNS
from familyhealth.errors import InvalidIdentifierError, ServiceError, StoreError
from familyhealth.security import sanitize_for_log
from familyhealth.store import Row, TableQuery, TableStore, table

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def event_name(operation: str) -> str:
    """'fetch family members' -> 'fetch_family_members_failed'"""
    return "_".join(operation.lower().split()) + "_failed"


def clean_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop server-owned columns from a partial update."""
    return {k: v for k, v in changes.items() if k not in SERVER_COLUMNS and k != "user_id"}


class BaseService:
    """Store access, logging and error translation for one feature area."""

    component = "service"

    def __init__(self, store: TableStore) -> None:
        self.store = store
        self.logger = logger.bind(component=self.component)

    def table(self, name: str) -> TableQuery:
        return table(self.store, name)

    @contextmanager
    def failures(self, operation: str) -> Iterator[None]:
        """Translate store and identifier errors raised inside the block."""
        try:
            yield
        except (StoreError, InvalidIdentifierError) as e:
            self.logger.error(event_name(operation), error=sanitize_for_log(e))
            raise ServiceError(f"Failed to {operation}") from e

    @staticmethod
    def parse(model: type[ModelT], rows: list[Row]) -> list[ModelT]:
        return [model.model_validate(row) for row in rows]

    @staticmethod
    def parse_one(model: type[ModelT], row: Row | None) -> ModelT | None:
        return None if row is None else model.model_validate(row)

    async def insert_one(self, name: str, row: Row) -> Row:
        """Insert one row and return it as stored. Raises StoreError."""
        result = await self.table(name).insert(row).single().execute()
        return result.unwrap()

    async def update_one(
        self, name: str, changes: Mapping[str, Any], *, user_id: str, record_id: str
    ) -> Row:
        """Update the user's row ``record_id``; zero matches is a row-not-found error."""
        result = await (
            self.table(name)
            .update(clean_changes(changes))
            .eq("user_id", user_id)
            .eq("id", record_id)
            .single()
            .execute()
        )
        return result.unwrap()

    async def delete_one(
        self, name: str, *, user_id: str, record_id: str, soft: bool = False
    ) -> None:
        """Hard delete, or flag ``is_active = false`` for soft-deleting tables."""
        query = self.table(name)
        query = query.update({"is_active": False}) if soft else query.delete()
        result = await query.eq("user_id", user_id).eq("id", record_id).execute()
        result.unwrap()
