"""
Remote table store access.

``TableStore`` is the protocol every service depends on; ``PostgrestStore``
talks to the hosted backend and ``InMemoryStore`` backs tests and demos.
"""

from familyhealth.config import StoreConfig
from familyhealth.store.base import Filter, OrderBy, Row, TableQuery, TableStore, table
from familyhealth.store.memory import InMemoryStore
from familyhealth.store.postgrest import PostgrestStore
from familyhealth.store.result import Result


def build_store(config: StoreConfig) -> TableStore:
    """Build the TableStore selected by configuration."""
    if config.backend == "postgrest":
        return PostgrestStore.from_config(config)
    return InMemoryStore()


__all__ = [
    "Filter",
    "InMemoryStore",
    "OrderBy",
    "PostgrestStore",
    "Result",
    "Row",
    "TableQuery",
    "TableStore",
    "build_store",
    "table",
]
