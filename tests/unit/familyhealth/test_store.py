"""
Tests for the Result type, the fluent TableQuery and the in-memory store.

The in-memory store is the fake every service test runs against, so its
filtering, ordering, upsert and failure behavior is pinned down here.
"""

from datetime import date, datetime, timezone

import pytest

from familyhealth.errors import ROW_NOT_FOUND, StoreError
from familyhealth.store import InMemoryStore, Result, build_store, table
from familyhealth.store.base import Filter, normalize_value
from familyhealth.store.memory import seed
from familyhealth.domain.models import Relationship
from familyhealth.config import StoreConfig


class TestResult:
    """Test the Result type for explicit error handling."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[str, StoreError] = Result.ok("row")
        assert result.is_ok()
        assert result.unwrap() == "row"

    def test_none_is_a_valid_ok_value(self) -> None:
        result: Result[None, StoreError] = Result.ok(None)
        assert result.is_ok()
        assert result.unwrap() is None

    def test_unwrap_raises_stored_error(self) -> None:
        result: Result[str, StoreError] = Result.err(StoreError("boom", code="XX"))
        assert result.unwrap_or("default") == "default"
        with pytest.raises(StoreError, match="boom"):
            result.unwrap()

    def test_unwrap_err_on_ok_raises(self) -> None:
        with pytest.raises(ValueError):
            Result.ok(1).unwrap_err()


def test_normalize_value_handles_enums_and_dates() -> None:
    assert normalize_value(Relationship.CHILD) == "child"
    assert normalize_value(date(2024, 1, 2)) == "2024-01-02"
    assert normalize_value(datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)).startswith(
        "2024-01-02T03:04"
    )
    assert normalize_value(5) == 5


def test_build_store_defaults_to_memory() -> None:
    assert isinstance(build_store(StoreConfig()), InMemoryStore)


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_insert_stamps_server_columns(self, store: InMemoryStore) -> None:
        rows = (await table(store, "things").insert({"name": "a"}).execute()).unwrap()

        assert len(rows) == 1
        assert rows[0]["id"]
        assert rows[0]["created_at"]
        assert rows[0]["updated_at"]

    @pytest.mark.asyncio
    async def test_duplicate_id_is_rejected(self, store: InMemoryStore) -> None:
        await table(store, "things").insert({"id": "x"}).execute()
        result = await table(store, "things").insert({"id": "x"}).execute()

        assert result.is_err()
        assert result.unwrap_err().code == "23505"

    @pytest.mark.asyncio
    async def test_filters_ordering_and_limit(self, store: InMemoryStore) -> None:
        seed(
            store,
            "logs",
            [
                {"user_id": "u", "day": "2024-01-03", "n": 3},
                {"user_id": "u", "day": "2024-01-01", "n": 1},
                {"user_id": "u", "day": "2024-01-02", "n": 2},
                {"user_id": "other", "day": "2024-01-02", "n": 9},
                {"user_id": "u", "day": None, "n": 0},
            ],
        )

        rows = (
            await table(store, "logs")
            .select()
            .eq("user_id", "u")
            .order("day", ascending=False)
            .execute()
        ).unwrap()
        assert [r["n"] for r in rows] == [3, 2, 1, 0]

        ranged = (
            await table(store, "logs")
            .select("n")
            .eq("user_id", "u")
            .gte("day", date(2024, 1, 2))
            .order("day")
            .limit(1)
            .execute()
        ).unwrap()
        assert ranged == [{"n": 2}]

    @pytest.mark.asyncio
    async def test_range_filter_compares_timestamps_across_offsets(
        self, store: InMemoryStore
    ) -> None:
        seed(store, "events", [{"at": "2024-01-01T10:00:00Z"}, {"at": "2024-01-01T08:00:00Z"}])
        cutoff = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

        rows = (await table(store, "events").select().gt("at", cutoff).execute()).unwrap()

        assert [r["at"] for r in rows] == ["2024-01-01T10:00:00Z"]

    @pytest.mark.asyncio
    async def test_single_and_maybe_single(self, store: InMemoryStore) -> None:
        seed(store, "profiles", [{"user_id": "u"}])

        single = await table(store, "profiles").select().eq("user_id", "u").single().execute()
        assert single.unwrap()["user_id"] == "u"

        missing = await table(store, "profiles").select().eq("user_id", "x").single().execute()
        assert missing.unwrap_err().code == ROW_NOT_FOUND
        assert missing.unwrap_err().is_not_found

        maybe = await table(store, "profiles").select().eq("user_id", "x").maybe_single().execute()
        assert maybe.is_ok()
        assert maybe.unwrap() is None

    @pytest.mark.asyncio
    async def test_update_and_delete_respect_filters(self, store: InMemoryStore) -> None:
        seed(store, "items", [{"id": "1", "owner": "a"}, {"id": "2", "owner": "b"}])

        updated = (
            await table(store, "items").update({"flag": True}).eq("owner", "a").execute()
        ).unwrap()
        assert [r["id"] for r in updated] == ["1"]

        deleted = (await table(store, "items").delete().neq("owner", "a").execute()).unwrap()
        assert [r["id"] for r in deleted] == ["2"]
        assert [r["id"] for r in store.rows("items")] == ["1"]
        assert store.rows("items")[0]["flag"] is True

    @pytest.mark.asyncio
    async def test_update_normalizes_values_and_copies_them(self, store: InMemoryStore) -> None:
        seed(store, "members", [{"id": "1", "relationship": "other"}])
        changes = {"relationship": Relationship.CHILD, "date_of_birth": date(2024, 1, 2)}

        query = table(store, "members").update(changes).eq("id", "1")
        changes["relationship"] = Relationship.SPOUSE
        await query.execute()

        row = store.rows("members")[0]
        assert row["relationship"] == "child"
        assert row["date_of_birth"] == "2024-01-02"

    @pytest.mark.asyncio
    async def test_upsert_merges_on_conflict_columns(self, store: InMemoryStore) -> None:
        query = table(store, "counts")
        await query.upsert({"user_id": "u", "kind": "a", "count": 1}, "user_id,kind").execute()
        await table(store, "counts").upsert(
            {"user_id": "u", "kind": "a", "count": 2}, on_conflict="user_id,kind"
        ).execute()
        await table(store, "counts").upsert(
            {"user_id": "u", "kind": "b", "count": 7}, on_conflict="user_id,kind"
        ).execute()

        rows = store.rows("counts")
        assert sorted((r["kind"], r["count"]) for r in rows) == [("a", 2), ("b", 7)]

    @pytest.mark.asyncio
    async def test_injected_failure_and_heal(self, store: InMemoryStore) -> None:
        store.fail_table("things")
        result = await table(store, "things").select().execute()
        assert result.is_err()
        assert result.unwrap_err().code == "XX000"

        store.heal_table("things")
        assert (await table(store, "things").select().execute()).unwrap() == []

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, store: InMemoryStore) -> None:
        seed(store, "things", [{"id": "1", "tags": ["a"]}])

        rows = (await table(store, "things").select().execute()).unwrap()
        rows[0]["tags"].append("b")

        assert store.rows("things")[0]["tags"] == ["a"]

    def test_limit_must_be_positive(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError):
            table(store, "things").limit(0)

    def test_created_at_is_strictly_increasing(self, store: InMemoryStore) -> None:
        seed(store, "things", [{}, {}, {}])
        stamps = [r["created_at"] for r in store.rows("things")]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 3


def test_filter_is_a_value_object() -> None:
    assert Filter("a", "eq", 1) == Filter("a", "eq", 1)
    assert Filter("a", "eq", 1) != Filter("a", "neq", 1)
