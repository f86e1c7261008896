"""PostgrestClient: entry point binding an endpoint and auth headers.

``from_()`` hands out fresh, independent QueryBuilders; ``rpc()`` calls a
database function immediately.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .builder import QueryBuilder, validate_payload
from .executor import (
    PreparedRequest,
    base_headers,
    schema_headers,
    send,
    split_schema_table,
)
from .settings import PostgrestSettings
from .types import QueryResult, QueryState

# Module-level shared client for connection pooling in app runtimes/tests.
_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


def _checked_url(url: str) -> str:
    # httpx.InvalidURL is not an HTTPError, so catch it here before any request.
    try:
        httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ValueError(f"invalid URL {url!r}: {exc}") from None
    return url


def _reset_shared_async_client_for_tests() -> None:
    """Test helper: clear shared client cache (does not close the instance)."""
    global _shared_async_client
    _shared_async_client = None


class PostgrestClient:
    """Async client for a PostgREST-compatible endpoint.

    Without ``http_client`` every instance shares one module-level
    ``httpx.AsyncClient``. That client is never closed by this library and is
    bound to the event loop that first used it, so code that calls
    ``asyncio.run`` more than once should pass its own ``http_client`` (and
    close it) or use ``from_settings`` together with ``aclose``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        schema: str | None = None,
        headers: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("endpoint is required")

        self._endpoint = _checked_url(endpoint.rstrip("/"))
        self._schema = schema or None
        self._headers = httpx.Headers(headers or {})
        if api_key:
            self._headers["apikey"] = api_key
            self._headers.setdefault("Authorization", f"Bearer {api_key}")
        self._http = http_client or _get_shared_async_client()
        self._owns_http = False

    @classmethod
    def from_settings(
        cls,
        settings: PostgrestSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> PostgrestClient:
        errors = settings.validate()
        if errors:
            raise ValueError("invalid PostgrestSettings: " + "; ".join(errors))
        owns_http = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=settings.timeout_seconds)
        client = cls(
            settings.endpoint,
            api_key=settings.api_key or None,
            schema=settings.schema or None,
            http_client=http_client,
        )
        client._owns_http = owns_http
        return client

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def set_auth(self, token: str) -> None:
        """Use ``token`` as the bearer token for builders created from now on.

        Builders that already exist keep the headers they were created with.
        """
        self._headers["Authorization"] = f"Bearer {token}"

    def from_(self, table: str) -> QueryBuilder:
        schema, name = split_schema_table(table, self._schema)
        if not name:
            raise ValueError("table name is required")
        _checked_url(f"{self._endpoint}/{name}")
        state = QueryState(
            endpoint=self._endpoint,
            table=name,
            schema=schema,
            headers=self._headers.copy(),
        )
        return QueryBuilder(state, self._http)

    def table(self, name: str) -> QueryBuilder:
        return self.from_(name)

    async def rpc(
        self,
        fn: str,
        params: Mapping[str, Any] | None = None,
        *,
        schema: str | None = None,
    ) -> QueryResult:
        """Call ``POST /rpc/<fn>`` right away and return the decoded result.

        Unlike table queries this is not deferred; the request is sent as
        soon as the coroutine is awaited.
        """
        has_body = params is not None
        headers = base_headers(self._headers)
        headers.update(schema_headers(schema or self._schema, "POST"))
        request = PreparedRequest(
            method="POST",
            url=_checked_url(f"{self._endpoint}/rpc/{fn}"),
            table=f"rpc/{fn}",
            headers=headers,
            json_body=validate_payload(dict(params)) if has_body else None,
            has_body=has_body,
        )
        return await send(self._http, request)

    async def aclose(self) -> None:
        """Close the httpx client if this instance created it.

        Injected clients and the shared module-level client are left open.
        """
        if self._owns_http:
            await self._http.aclose()
