"""
Tests for the PostgREST store.

Requests are captured with ``httpx.MockTransport`` so no network is used; the
tests check URL/params/headers produced for each operation and how error
bodies and transport failures map to StoreError.
"""

from __future__ import annotations

import json

import httpx
import pytest

from familyhealth.config import StoreConfig
from familyhealth.errors import NETWORK_ERROR, ROW_NOT_FOUND
from familyhealth.store import PostgrestStore, table
from familyhealth.store.base import Filter, OrderBy
from familyhealth.store.postgrest import build_params, format_filter_value

BASE = "https://demo.supabase.co"


class _Recorder:
    """Records requests and replays a canned response."""

    def __init__(self, status: int = 200, body: object = None) -> None:
        self.status = status
        self.body = [] if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _store(recorder: _Recorder, **kwargs) -> PostgrestStore:
    return PostgrestStore(BASE, "anon-key", transport=httpx.MockTransport(recorder), **kwargs)


class TestParams:
    def test_filter_values_are_rendered_as_op_value(self) -> None:
        assert format_filter_value(Filter("user_id", "eq", "u1")) == ("user_id", "eq.u1")
        assert format_filter_value(Filter("is_active", "eq", True)) == ("is_active", "eq.true")
        assert format_filter_value(Filter("end_date", "eq", None)) == ("end_date", "is.null")
        assert format_filter_value(Filter("end_date", "neq", None)) == ("end_date", "not.is.null")

    def test_build_params_orders_and_limits(self) -> None:
        params = build_params(
            filters=[Filter("due_date", "gte", "2024-01-01")],
            order=[OrderBy("due_date"), OrderBy("created_at", ascending=False)],
            limit=5,
        )
        assert params == [
            ("select", "*"),
            ("due_date", "gte.2024-01-01"),
            ("order", "due_date.asc,created_at.desc"),
            ("limit", "5"),
        ]


class TestPostgrestStore:
    @pytest.mark.asyncio
    async def test_select_builds_query_and_auth_headers(self) -> None:
        recorder = _Recorder(body=[{"id": "1"}])
        store = _store(recorder, schema_name="health")

        result = (
            await table(store, "prescriptions")
            .select()
            .eq("user_id", "u1")
            .order("created_at", ascending=False)
            .limit(10)
            .execute()
        )

        assert result.unwrap() == [{"id": "1"}]
        request = recorder.last
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/prescriptions"
        assert request.url.params["user_id"] == "eq.u1"
        assert request.url.params["order"] == "created_at.desc"
        assert request.url.params["limit"] == "10"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        assert request.headers["Accept-Profile"] == "health"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_insert_asks_for_representation(self) -> None:
        recorder = _Recorder(status=201, body=[{"id": "new", "medication_name": "Ibuprofen"}])
        async with _store(recorder) as store:
            result = await store.insert("prescriptions", [{"medication_name": "Ibuprofen"}])

        assert result.unwrap()[0]["id"] == "new"
        assert recorder.last.method == "POST"
        assert recorder.last.headers["Prefer"] == "return=representation"
        assert json.loads(recorder.last.content) == [{"medication_name": "Ibuprofen"}]

    @pytest.mark.asyncio
    async def test_upsert_sends_merge_duplicates_and_on_conflict(self) -> None:
        recorder = _Recorder(status=201, body=[{"user_id": "u1", "total_points": 5}])
        async with _store(recorder) as store:
            await store.upsert("user_points", [{"user_id": "u1"}], on_conflict="user_id")

        assert recorder.last.url.params["on_conflict"] == "user_id"
        assert "resolution=merge-duplicates" in recorder.last.headers["Prefer"]

    @pytest.mark.asyncio
    async def test_update_and_delete_carry_filters(self) -> None:
        recorder = _Recorder(body=[])
        async with _store(recorder) as store:
            await store.update("bills", {"status": "Paid"}, filters=[Filter("id", "eq", "b1")])
            assert recorder.last.method == "PATCH"
            assert recorder.last.url.params["id"] == "eq.b1"

            await store.delete("bills", filters=[Filter("id", "eq", "b1")])
            assert recorder.last.method == "DELETE"
            assert recorder.last.url.params["id"] == "eq.b1"

    @pytest.mark.asyncio
    async def test_error_body_is_decoded(self) -> None:
        recorder = _Recorder(
            status=406,
            body={
                "code": ROW_NOT_FOUND,
                "message": "JSON object requested, multiple (or no) rows returned",
                "details": "The result contains 0 rows",
                "hint": None,
            },
        )
        async with _store(recorder) as store:
            result = await store.select("user_points")

        error = result.unwrap_err()
        assert error.status == 406
        assert error.is_not_found
        assert error.details == "The result contains 0 rows"

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_network_error(self) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = PostgrestStore(BASE, "anon-key", transport=httpx.MockTransport(boom))
        result = await store.select("vitals_logs")
        await store.aclose()

        assert result.is_err()
        assert result.unwrap_err().code == NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_empty_response_is_empty_list(self) -> None:
        def no_content(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        async with PostgrestStore(
            BASE, "anon-key", transport=httpx.MockTransport(no_content)
        ) as store:
            result = await store.delete("bills")

        assert result.unwrap() == []

    def test_from_config_requires_credentials(self) -> None:
        with pytest.raises(ValueError):
            PostgrestStore.from_config(StoreConfig())

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self) -> None:
        recorder = _Recorder()
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        store = PostgrestStore(BASE, "anon-key", client=client)

        await store.aclose()
        await store.select("things")

        assert recorder.last.headers["apikey"] == "anon-key"
        await client.aclose()
