"""Shared fixtures: an in-memory store, a fixed clock and a test user."""

from collections.abc import Iterator
from datetime import date

import pytest

from familyhealth.config import reset_config_cache
from familyhealth.store import InMemoryStore

TODAY = date(2024, 6, 15)
USER_ID = "user-123"


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock(today: date):
    return lambda: today


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    reset_config_cache()
    yield
    reset_config_cache()
