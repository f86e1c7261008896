"""Tests for request logging and structlog configuration."""

from __future__ import annotations

import io
import json
import logging

import httpx
import pytest
import structlog
from structlog.testing import capture_logs

import pgrest_client.logging as pg_logging


@pytest.mark.asyncio
async def test_request_event_has_no_header_values(make_client):
    client = make_client(
        lambda r: httpx.Response(200, json=[], headers={"Content-Range": "*/0"}),
        api_key="secret-key",
    )
    with capture_logs() as logs:
        await client.from_("todos").select("*", count="exact")

    events = [e for e in logs if e["event"] == "postgrest_request"]
    assert len(events) == 1
    expected = {"log_level": "debug", "method": "GET", "table": "todos", "status": 200, "count": 0}
    assert expected.items() <= events[0].items()
    assert "secret-key" not in repr(logs)


@pytest.mark.asyncio
async def test_transport_error_logged_as_warning(make_client):
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_client(refuse)
    with capture_logs() as logs:
        await client.from_("t")

    warning = next(e for e in logs if e["event"] == "postgrest_transport_error")
    assert warning["log_level"] == "warning"
    assert warning["error_type"] == "ConnectError"


@pytest.mark.asyncio
async def test_reexecution_is_logged(make_client):
    client = make_client()
    builder = client.from_("t").delete().eq("id", 1)
    with capture_logs() as logs:
        await builder
        await builder

    reexec = [e for e in logs if e["event"] == "postgrest_reexecute"]
    assert len(reexec) == 1
    assert reexec[0]["executions"] == 1
    assert reexec[0]["method"] == "DELETE"


@pytest.mark.asyncio
async def test_error_response_logged_with_code(make_client):
    client = make_client(lambda r: httpx.Response(409, json={"message": "dup", "code": "23505"}))
    with capture_logs() as logs:
        await client.from_("t").insert({"id": 1})

    event = next(e for e in logs if e["event"] == "postgrest_error_response")
    assert event["status"] == 409
    assert event["code"] == "23505"


@pytest.fixture
def package_logging():
    structlog.reset_defaults()
    yield
    pg_logging.remove_logging_handler()
    structlog.reset_defaults()


def test_configure_logging_leaves_root_handlers_alone(package_logging):
    root = logging.getLogger()
    host_handler = logging.NullHandler()
    root.addHandler(host_handler)
    saved_handlers = root.handlers[:]
    saved_level = root.level
    try:
        first = pg_logging.configure_logging(level="DEBUG", json_output=False)

        assert root.handlers == saved_handlers
        assert host_handler in root.handlers
        assert root.level == saved_level

        package_logger = logging.getLogger(pg_logging.PACKAGE_LOGGER)
        assert first in package_logger.handlers
        assert package_logger.level == logging.DEBUG
        assert package_logger.propagate is False
    finally:
        root.removeHandler(host_handler)


def test_configure_logging_is_idempotent(package_logging):
    first = pg_logging.configure_logging(level="DEBUG")
    second = pg_logging.configure_logging(level="ERROR")

    package_logger = logging.getLogger(pg_logging.PACKAGE_LOGGER)
    assert second is first
    assert package_logger.handlers.count(first) == 1
    assert package_logger.level == logging.DEBUG


def test_configured_handler_renders_json_events(package_logging):
    stream = io.StringIO()
    pg_logging.configure_logging(level="DEBUG", json_output=True, stream=stream)

    pg_logging.get_logger("pgrest_client.executor").debug(
        "postgrest_request", method="GET", table="todos"
    )

    line = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert line["event"] == "postgrest_request"
    assert line["level"] == "debug"
    assert line["logger"] == "pgrest_client.executor"
    assert line["table"] == "todos"


def test_remove_logging_handler_restores_propagation(package_logging):
    pg_logging.configure_logging()
    pg_logging.remove_logging_handler()

    package_logger = logging.getLogger(pg_logging.PACKAGE_LOGGER)
    assert package_logger.propagate is True
    assert not any(isinstance(h, pg_logging._PackageHandler) for h in package_logger.handlers)


def test_get_logger_returns_bound_logger():
    logger = pg_logging.get_logger("pgrest_client.test")
    assert hasattr(logger, "info")
