"""Synchronous misuse errors for the query builder.

Backend and transport failures never raise; they resolve into
``QueryResult.error``. The exceptions here are only for input problems
that can be detected before any request is attempted.
"""

from __future__ import annotations


class QueryBuilderError(ValueError):
    """Invalid builder usage (bad modifier arguments, unknown modes)."""


class EncodingError(QueryBuilderError):
    """A filter value or mutation payload cannot be encoded for the wire."""
