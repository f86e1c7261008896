"""Async fluent client for PostgREST-compatible REST endpoints.

Example::

    from pgrest_client import PostgrestClient

    client = PostgrestClient("https://db.example.com", api_key="anon-key")
    result = await client.from_("todos").select("*", count="exact").eq("done", False)
    if result.error is None:
        print(result.count, result.data)
"""

from .builder import QueryBuilder
from .client import PostgrestClient
from .errors import EncodingError, QueryBuilderError
from .logging import configure_logging, get_logger
from .settings import PostgrestSettings
from .types import CountMode, PostgrestError, QueryResult, ResultMode

__all__ = [
    "CountMode",
    "EncodingError",
    "PostgrestClient",
    "PostgrestError",
    "PostgrestSettings",
    "QueryBuilder",
    "QueryBuilderError",
    "QueryResult",
    "ResultMode",
    "configure_logging",
    "get_logger",
]
