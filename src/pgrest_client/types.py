"""Result envelope and builder state types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx


class ResultMode(str, Enum):
    COLLECTION = "collection"
    SINGLE = "single"
    MAYBE_SINGLE = "maybe_single"
    HEAD_ONLY = "head_only"


class CountMode(str, Enum):
    EXACT = "exact"
    PLANNED = "planned"
    ESTIMATED = "estimated"


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Mutation:
    kind: MutationKind
    payload: Any = None
    on_conflict: str | None = None


@dataclass(frozen=True, slots=True)
class PostgrestError:
    """Error half of the result envelope.

    ``message`` is always set. ``code``/``details``/``hint`` are copied
    from a PostgREST JSON error body when one was returned; transport
    failures only carry a message.
    """

    message: str
    code: str | None = None
    details: str | None = None
    hint: str | None = None
    status_code: int | None = None


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Uniform ``{data, error, count}`` envelope returned by every query."""

    data: Any = None
    error: PostgrestError | None = None
    count: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class QueryState:
    """Everything a QueryBuilder has accumulated so far."""

    endpoint: str
    table: str
    headers: httpx.Headers
    schema: str | None = None
    select_columns: str = "*"
    filters: list[tuple[str, str]] = field(default_factory=list)
    order_terms: list[str] = field(default_factory=list)
    limit: int | None = None
    mutation: Mutation | None = None
    count_mode: CountMode | None = None
    result_mode: ResultMode = ResultMode.COLLECTION
