"""Fluent PostgREST query builder with deferred execution.

Chain calls only accumulate state on the builder (each returns the same
instance); the request goes out when the builder is awaited or when
``execute()`` is called::

    result = await client.from_("todos").select("id,title").eq("done", False).limit(10)

Awaiting the same builder twice sends two requests. Nothing is memoized,
so re-awaiting an insert/delete builder repeats the write.
"""

from __future__ import annotations

import json
from collections.abc import Generator, Iterable, Mapping
from typing import Any

import httpx

from . import filters as _filters
from .errors import EncodingError, QueryBuilderError
from .executor import SINGULAR_ACCEPT, build_request, send
from .logging import get_logger
from .types import (
    CountMode,
    Mutation,
    MutationKind,
    QueryResult,
    QueryState,
    ResultMode,
)

logger = get_logger(__name__)


def validate_payload(payload: Any) -> Any:
    try:
        json.dumps(payload, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"mutation payload is not JSON-serializable: {exc}") from exc
    return payload


def _non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryBuilderError(f"{name} must be a non-negative integer, got {value!r}")
    return value


class QueryBuilder:
    """Accumulates one logical query against a single table.

    A builder is not safe to mutate from two tasks at once. Create one per
    query via ``PostgrestClient.from_``.
    """

    def __init__(self, state: QueryState, http_client: httpx.AsyncClient) -> None:
        self._state = state
        self._http = http_client
        self._executions = 0

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def executions(self) -> int:
        """Number of requests this builder has issued so far."""
        return self._executions

    # ── Projection ──────────────────────────────────────────────────

    def select(
        self,
        columns: str = "*",
        *,
        count: CountMode | str | None = None,
        head: bool = False,
    ) -> QueryBuilder:
        self._state.select_columns = columns
        if count is not None:
            try:
                self._state.count_mode = CountMode(count)
            except ValueError:
                raise QueryBuilderError(
                    f"count must be one of exact/planned/estimated, got {count!r}"
                ) from None
        if head:
            self._state.result_mode = ResultMode.HEAD_ONLY
        return self

    # ── Mutations (last call wins) ──────────────────────────────────

    def insert(self, data: Any) -> QueryBuilder:
        self._state.mutation = Mutation(MutationKind.INSERT, validate_payload(data))
        return self

    def update(self, data: Mapping[str, Any]) -> QueryBuilder:
        self._state.mutation = Mutation(MutationKind.UPDATE, validate_payload(data))
        return self

    def upsert(self, data: Any, *, on_conflict: str | None = None) -> QueryBuilder:
        self._state.mutation = Mutation(
            MutationKind.UPSERT, validate_payload(data), on_conflict=on_conflict
        )
        return self

    def delete(self) -> QueryBuilder:
        self._state.mutation = Mutation(MutationKind.DELETE)
        return self

    # ── Filters ─────────────────────────────────────────────────────

    def _append(self, entry: tuple[str, str]) -> QueryBuilder:
        self._state.filters.append(entry)
        return self

    def eq(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "eq", value))

    def neq(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "neq", value))

    def gt(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "gt", value))

    def gte(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "gte", value))

    def lt(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "lt", value))

    def lte(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "lte", value))

    def like(self, column: str, pattern: str) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "like", pattern))

    def ilike(self, column: str, pattern: str) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "ilike", pattern))

    def is_(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_comparison(column, "is", value))

    def in_(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._append(_filters.encode_in(column, values))

    def contains(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_contains(column, value))

    def contained_by(self, column: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_contained_by(column, value))

    def or_(self, expression: str) -> QueryBuilder:
        return self._append(_filters.encode_group("or", expression))

    def and_(self, expression: str) -> QueryBuilder:
        return self._append(_filters.encode_group("and", expression))

    def not_(self, column: str, operator: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_not(column, operator, value))

    def filter(self, column: str, operator: str, value: Any) -> QueryBuilder:
        return self._append(_filters.encode_raw(column, operator, value))

    def match(self, record: Mapping[str, Any]) -> QueryBuilder:
        self._state.filters.extend(_filters.encode_match(record))
        return self

    # ── Modifiers ───────────────────────────────────────────────────

    def order(
        self,
        column: str,
        *,
        ascending: bool = True,
        nulls_first: bool = False,
    ) -> QueryBuilder:
        if not column:
            raise QueryBuilderError("order column must be a non-empty string")
        direction = "asc" if ascending else "desc"
        nulls = "nullsfirst" if nulls_first else "nullslast"
        self._state.order_terms.append(f"{column}.{direction}.{nulls}")
        return self

    def limit(self, count: int) -> QueryBuilder:
        self._state.limit = _non_negative_int("limit", count)
        return self

    def range(self, start: int, end: int) -> QueryBuilder:
        """Request rows ``start`` through ``end`` inclusive (zero-indexed)."""
        start = _non_negative_int("range start", start)
        end = _non_negative_int("range end", end)
        if end < start:
            raise QueryBuilderError(f"range end ({end}) is before start ({start})")
        self._state.headers["Range"] = f"{start}-{end}"
        return self

    def single(self) -> QueryBuilder:
        self._state.result_mode = ResultMode.SINGLE
        self._state.headers["Accept"] = SINGULAR_ACCEPT
        return self

    def maybe_single(self) -> QueryBuilder:
        # Same wire behaviour as single(); see DESIGN.md open questions.
        self._state.result_mode = ResultMode.MAYBE_SINGLE
        self._state.headers["Accept"] = SINGULAR_ACCEPT
        return self

    # ── Execution ───────────────────────────────────────────────────

    async def execute(self) -> QueryResult:
        """Send the accumulated query. Each call is a separate request."""
        request = build_request(self._state)
        if self._executions:
            logger.debug(
                "postgrest_reexecute",
                table=self._state.table,
                method=request.method,
                executions=self._executions,
            )
        self._executions += 1
        return await send(self._http, request, self._state.result_mode)

    def __await__(self) -> Generator[Any, None, QueryResult]:
        return self.execute().__await__()

    def __repr__(self) -> str:
        return (
            f"QueryBuilder(table={self._state.table!r}, "
            f"mode={self._state.result_mode.value}, filters={len(self._state.filters)})"
        )
