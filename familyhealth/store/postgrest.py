"""
PostgREST (Supabase REST) implementation of the TableStore protocol.

Requests go to ``{url}/rest/v1/{table}``:
- filters become ``column=op.value`` query parameters
- ordering becomes ``order=col.asc,col2.desc``
- writes ask for ``Prefer: return=representation`` so rows come back
- upserts add ``resolution=merge-duplicates`` and ``on_conflict``

Remote and transport failures are returned as ``Result.err(StoreError)``.
No retries: a failed call is reported once and the caller decides.
"""

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from familyhealth.config import StoreConfig
from familyhealth.errors import NETWORK_ERROR, StoreError
from familyhealth.store.base import Filter, OrderBy, Row
from familyhealth.store.result import Result

logger = structlog.get_logger(__name__)


def format_filter_value(flt: Filter) -> tuple[str, str]:
    """Render a Filter as a PostgREST ``(column, "op.value")`` pair."""
    value = flt.value
    if value is None:
        op = "is" if flt.op == "eq" else "not.is"
        return flt.column, f"{op}.null"
    if isinstance(value, bool):
        rendered = "true" if value else "false"
    else:
        rendered = str(value)
    return flt.column, f"{flt.op}.{rendered}"


def build_params(
    *,
    columns: str = "*",
    filters: Sequence[Filter] = (),
    order: Sequence[OrderBy] = (),
    limit: int | None = None,
    on_conflict: str | None = None,
) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    if columns:
        params.append(("select", columns))
    params.extend(format_filter_value(f) for f in filters)
    if order:
        params.append(
            ("order", ",".join(f"{o.column}.{'asc' if o.ascending else 'desc'}" for o in order))
        )
    if limit is not None:
        params.append(("limit", str(limit)))
    if on_conflict:
        params.append(("on_conflict", on_conflict))
    return params


def _error_from_response(response: httpx.Response) -> StoreError:
    try:
        body: Any = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return StoreError(
        str(body.get("message") or response.reason_phrase or "request failed"),
        code=body.get("code"),
        details=body.get("details"),
        hint=body.get("hint"),
        status=response.status_code,
    )


class PostgrestStore:
    """
    Async PostgREST client.

    Owns an ``httpx.AsyncClient`` unless one is injected; use as an async
    context manager or call ``aclose()``.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        schema_name: str = "public",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.schema_name = schema_name
        self.logger = logger.bind(component="postgrest_store", base_url=self.base_url)
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept-Profile": schema_name,
            "Content-Profile": schema_name,
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        if client is not None:
            self._client.headers.update(headers)

    @classmethod
    def from_config(cls, config: StoreConfig, **kwargs: Any) -> "PostgrestStore":
        if not config.url or not config.api_key:
            raise ValueError("StoreConfig has no url/api_key for the PostgREST backend")
        return cls(
            config.url,
            config.api_key,
            schema_name=config.schema_name,
            timeout_seconds=config.timeout_seconds,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PostgrestStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]],
        json: Any = None,
        prefer: str | None = None,
    ) -> Result[list[Row], StoreError]:
        headers = {"Prefer": prefer} if prefer else None
        url = f"{self.base_url}/{table}"
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            self.logger.error("store_request_failed", method=method, table=table, error=str(e))
            return Result.err(StoreError(str(e) or type(e).__name__, code=NETWORK_ERROR))

        if response.status_code >= 400:
            error = _error_from_response(response)
            self.logger.warning(
                "store_request_rejected",
                method=method,
                table=table,
                status=response.status_code,
                code=error.code,
            )
            return Result.err(error)

        self.logger.debug("store_request_completed", method=method, table=table)
        if response.status_code == 204 or not response.content:
            return Result.ok([])
        data = response.json()
        if isinstance(data, dict):
            return Result.ok([data])
        return Result.ok(list(data))

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> Result[list[Row], StoreError]:
        params = build_params(columns=columns, filters=filters, order=order, limit=limit)
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, rows: Sequence[Row]) -> Result[list[Row], StoreError]:
        return await self._request(
            "POST",
            table,
            params=build_params(),
            json=list(rows),
            prefer="return=representation",
        )

    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]:
        return await self._request(
            "PATCH",
            table,
            params=build_params(filters=filters),
            json=values,
            prefer="return=representation",
        )

    async def upsert(
        self, table: str, rows: Sequence[Row], *, on_conflict: str | None = None
    ) -> Result[list[Row], StoreError]:
        return await self._request(
            "POST",
            table,
            params=build_params(on_conflict=on_conflict),
            json=list(rows),
            prefer="resolution=merge-duplicates,return=representation",
        )

    async def delete(
        self, table: str, *, filters: Sequence[Filter] = ()
    ) -> Result[list[Row], StoreError]:
        return await self._request(
            "DELETE",
            table,
            params=build_params(filters=filters),
            prefer="return=representation",
        )
