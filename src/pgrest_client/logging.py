"""Logging for pgrest-client.

Modules emit structlog events through ``get_logger``; how they are rendered
is up to the host application. Applications that have no logging setup of
their own can call ``configure_logging`` to get JSON (or console) output for
this package only::

    from pgrest_client.logging import configure_logging

    configure_logging(level="DEBUG")

Header values are never passed to the logger; they may carry bearer tokens.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

import structlog

PACKAGE_LOGGER = "pgrest_client"

# Applied to every record our handler formats, structlog or plain stdlib.
_PRE_CHAIN: list = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


class _PackageHandler(logging.StreamHandler):
    """Marker type so repeated configure_logging calls can find their handler."""


def _find_handler(logger: logging.Logger) -> _PackageHandler | None:
    for handler in logger.handlers:
        if isinstance(handler, _PackageHandler):
            return handler
    return None


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach a structlog-rendering handler to the ``pgrest_client`` logger.

    Only the package logger is touched: root handlers and levels stay as the
    host application left them, and an existing structlog configuration is
    reused rather than replaced. Calling this again returns the handler that
    is already installed.

    Args:
        level: Log level name for the package logger. Defaults to the
            PGREST_LOG_LEVEL env var or INFO.
        json_output: Emit JSON lines when True, console output when False.
            Defaults to PGREST_LOG_FORMAT env var == "json".
        stream: Where to write. Defaults to stderr.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    existing = _find_handler(package_logger)
    if existing is not None:
        return existing

    level = level or os.environ.get("PGREST_LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("PGREST_LOG_FORMAT", "json") == "json"

    if not structlog.is_configured():
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = _PackageHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_PRE_CHAIN,
            processors=[
                *_PRE_CHAIN,
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Our handler renders these events; don't also hand them to root.
    package_logger.propagate = False
    return handler


def remove_logging_handler() -> None:
    """Undo configure_logging: drop the package handler and restore propagation."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    handler = _find_handler(package_logger)
    if handler is not None:
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name or PACKAGE_LOGGER)
