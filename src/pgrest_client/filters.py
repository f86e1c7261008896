"""PostgREST filter encoding.

Each function maps one filter call onto one ``(key, value)`` query-parameter
entry. Callers append the entry to an ordered list; nothing here reorders,
merges or drops entries.

Wire shapes::

    eq/neq/gt/gte/lt/lte/like/ilike/is   col=<op>.<value>
    in                                   col=in.(v1,v2)       (empty -> in.())
    contains / contained_by              col=cs.<json> / col=cd.<json>
    or / and                             or=(<expr>) / and=(<expr>)
    not                                  col=not.<op>.<value>
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import EncodingError

FilterEntry = tuple[str, str]

COMPARISON_OPERATORS = frozenset(
    {"eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is"}
)
JSON_OPERATORS = {"contains": "cs", "contained_by": "cd"}


def format_value(value: Any) -> str:
    """Render a scalar the way the backend expects it inside a filter."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _require_column(column: str) -> str:
    if not isinstance(column, str) or not column:
        raise EncodingError("filter column must be a non-empty string")
    return column


def encode_json(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"value is not JSON-serializable: {exc}") from exc


def encode_comparison(column: str, op: str, value: Any) -> FilterEntry:
    if op not in COMPARISON_OPERATORS:
        raise EncodingError(f"unsupported comparison operator: {op!r}")
    return _require_column(column), f"{op}.{format_value(value)}"


def encode_in(column: str, values: Iterable[Any]) -> FilterEntry:
    # An empty list must still go over the wire as in.() so the backend
    # applies its own exclude-everything semantics.
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
        raise EncodingError("in operator requires a list/tuple/set of values")
    items = ",".join(format_value(v) for v in values)
    return _require_column(column), f"in.({items})"


def encode_contains(column: str, value: Any) -> FilterEntry:
    return _require_column(column), f"{JSON_OPERATORS['contains']}.{encode_json(value)}"


def encode_contained_by(column: str, value: Any) -> FilterEntry:
    return _require_column(column), f"{JSON_OPERATORS['contained_by']}.{encode_json(value)}"


def encode_group(kind: str, expression: str) -> FilterEntry:
    if kind not in ("or", "and"):
        raise EncodingError(f"unsupported logical group: {kind!r}")
    if not isinstance(expression, str):
        raise EncodingError(f"{kind} expects a raw filter expression string")
    return kind, f"({expression})"


def encode_not(column: str, op: str, value: Any) -> FilterEntry:
    return _require_column(column), f"not.{op}.{format_value(value)}"


def encode_raw(column: str, op: str, value: Any) -> FilterEntry:
    """Escape hatch: no operator validation, no value transformation."""
    return _require_column(column), f"{op}.{format_value(value)}"


def encode_match(record: Mapping[str, Any]) -> list[FilterEntry]:
    if not isinstance(record, Mapping):
        raise EncodingError("match expects a mapping of column -> value")
    return [encode_comparison(col, "eq", val) for col, val in record.items()]


def encode_filter(column: str, op: str, value: Any) -> FilterEntry:
    """Encode a named operator (as accepted by the builder's filter methods)."""
    if op in COMPARISON_OPERATORS:
        return encode_comparison(column, op, value)
    if op == "in":
        return encode_in(column, value)
    if op == "contains":
        return encode_contains(column, value)
    if op == "contained_by":
        return encode_contained_by(column, value)
    raise EncodingError(f"unsupported filter operator: {op!r}")
