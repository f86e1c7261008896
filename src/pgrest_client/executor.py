"""Turn accumulated query state into one HTTP request and decode the response.

This is the only module that talks to httpx. Every outcome, including
non-2xx statuses and transport failures, comes back as a QueryResult;
nothing here raises past ``send``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from .coercion import coerce_result
from .logging import get_logger
from .types import MutationKind, PostgrestError, QueryResult, QueryState, ResultMode

logger = get_logger(__name__)

SINGULAR_ACCEPT = "application/vnd.pgrst.object+json"

_CONTENT_RANGE_TOTAL = re.compile(r"/(\d+)$")

_METHODS = {
    MutationKind.INSERT: "POST",
    MutationKind.UPSERT: "POST",
    MutationKind.UPDATE: "PATCH",
    MutationKind.DELETE: "DELETE",
}

_WRITE_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})


@dataclass(slots=True)
class PreparedRequest:
    method: str
    url: str
    table: str
    headers: httpx.Headers
    params: list[tuple[str, str]] = field(default_factory=list)
    json_body: Any = None
    has_body: bool = False


def split_schema_table(table: str, default_schema: str | None) -> tuple[str | None, str]:
    # "cloud.workspaces" selects the "cloud" profile; a bare name uses the default.
    if "." in table:
        schema, name = table.split(".", 1)
        return schema.strip() or default_schema, name.strip()
    return default_schema, table.strip()


def schema_headers(schema: str | None, method: str) -> dict[str, str]:
    headers: dict[str, str] = {}
    if schema:
        headers["Accept-Profile"] = schema
        if method in _WRITE_METHODS:
            headers["Content-Profile"] = schema
    return headers


def base_headers(overrides: Mapping[str, str] | httpx.Headers) -> httpx.Headers:
    """``Content-Type: application/json`` plus overrides, merged case-insensitively."""
    headers = httpx.Headers({"Content-Type": "application/json"})
    headers.update(overrides)
    return headers


def prefer_header(state: QueryState) -> str | None:
    parts: list[str] = []
    mutation = state.mutation
    if mutation is not None:
        parts.append("return=representation")
        if mutation.kind is MutationKind.UPSERT:
            parts.append("resolution=merge-duplicates")
            if mutation.on_conflict:
                parts.append(f"on_conflict={mutation.on_conflict}")
    if state.count_mode is not None:
        parts.append(f"count={state.count_mode.value}")
    return ",".join(parts) if parts else None


def build_request(state: QueryState) -> PreparedRequest:
    """Translate builder state into a concrete request. Pure; no I/O."""
    method = "GET"
    if state.mutation is not None:
        method = _METHODS[state.mutation.kind]

    params = list(state.filters)
    if state.order_terms:
        params.append(("order", ",".join(state.order_terms)))
    if state.limit is not None:
        params.append(("limit", str(state.limit)))
    # Mutations control the returned representation through Prefer instead.
    if method == "GET" and state.select_columns != "*":
        params.append(("select", state.select_columns))

    headers = base_headers(state.headers)
    headers.update(schema_headers(state.schema, method))
    prefer = prefer_header(state)
    if prefer is not None:
        headers["Prefer"] = prefer

    has_body = state.mutation is not None and state.mutation.kind is not MutationKind.DELETE
    return PreparedRequest(
        method=method,
        url=f"{state.endpoint}/{state.table}",
        table=state.table,
        headers=headers,
        params=params,
        json_body=state.mutation.payload if has_body else None,
        has_body=has_body,
    )


def parse_count(content_range: str | None) -> int | None:
    """Total row count from ``Content-Range: 0-9/42``; ``None`` when unknown."""
    if not content_range:
        return None
    match = _CONTENT_RANGE_TOTAL.search(content_range.strip())
    if match is None:
        return None
    return int(match.group(1))


def decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def decode_error(resp: httpx.Response) -> PostgrestError:
    fallback = resp.reason_phrase or f"HTTP {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        return PostgrestError(message=fallback, status_code=resp.status_code)

    code = payload.get("code")
    details = payload.get("details")
    hint = payload.get("hint")
    return PostgrestError(
        message=payload.get("message") or details or fallback,
        code=str(code) if code is not None else None,
        details=str(details) if details is not None else None,
        hint=str(hint) if hint is not None else None,
        status_code=resp.status_code,
    )


def _exception_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


async def send(
    client: httpx.AsyncClient,
    request: PreparedRequest,
    mode: ResultMode = ResultMode.COLLECTION,
) -> QueryResult:
    """Issue exactly one request and fold the outcome into a QueryResult."""
    kwargs: dict[str, Any] = {
        "params": request.params,
        "headers": request.headers,
    }
    if request.has_body:
        kwargs["json"] = request.json_body

    try:
        resp = await client.request(request.method, request.url, **kwargs)
    except httpx.HTTPError as exc:
        logger.warning(
            "postgrest_transport_error",
            method=request.method,
            table=request.table,
            error=_exception_message(exc),
            error_type=exc.__class__.__name__,
        )
        return QueryResult(error=PostgrestError(message=_exception_message(exc)))

    count = parse_count(resp.headers.get("content-range"))
    logger.debug(
        "postgrest_request",
        method=request.method,
        table=request.table,
        status=resp.status_code,
        count=count,
    )

    if not resp.is_success:
        error = decode_error(resp)
        logger.info(
            "postgrest_error_response",
            method=request.method,
            table=request.table,
            status=resp.status_code,
            code=error.code,
        )
        return QueryResult(error=error, count=count)

    if mode is ResultMode.HEAD_ONLY:
        return QueryResult(count=count)

    return QueryResult(data=coerce_result(decode_body(resp), mode), count=count)
