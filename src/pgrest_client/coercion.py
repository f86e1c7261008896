"""Result shaping for single-row and head-only queries."""

from __future__ import annotations

from typing import Any

from .types import ResultMode


def coerce_result(data: Any, mode: ResultMode) -> Any:
    """Shape a decoded response body according to the builder's result mode.

    Single and maybe-single both take the first row of an array body (or
    ``None`` for an empty array) and pass anything else through, since the
    server may already have honored the singular ``Accept`` header.
    Neither mode turns a zero-row result into an error.
    """
    if mode is ResultMode.HEAD_ONLY:
        return None
    if mode in (ResultMode.SINGLE, ResultMode.MAYBE_SINGLE) and isinstance(data, list):
        return data[0] if data else None
    return data
