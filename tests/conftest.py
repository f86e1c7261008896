"""Pytest configuration for pgrest_client tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import httpx
import pytest

from pgrest_client.client import PostgrestClient, _reset_shared_async_client_for_tests

ENDPOINT = 'https://db.test.local'


class RequestLog:
    """Collects every request a MockTransport handler sees."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __len__(self):
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def _reset_shared_client():
    _reset_shared_async_client_for_tests()
    yield
    _reset_shared_async_client_for_tests()


@pytest.fixture
def request_log():
    return RequestLog()


@pytest.fixture
def make_client(request_log):
    """Build a PostgrestClient whose transport is the given response factory.

    ``respond`` receives the httpx.Request and returns an httpx.Response
    (or raises an httpx exception to simulate a transport failure).
    """

    def _make(respond=None, **kwargs) -> PostgrestClient:
        def handler(request: httpx.Request) -> httpx.Response:
            request_log.requests.append(request)
            if respond is None:
                return httpx.Response(200, json=[])
            return respond(request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PostgrestClient(ENDPOINT, http_client=http, **kwargs)

    return _make
