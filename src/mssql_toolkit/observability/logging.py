"""
mssql_toolkit.observability.logging

Structured logging configuration for the toolkit.

Responsibilities:
- Configure `structlog` for JSON logs (opt-in; libraries embedding the toolkit may
  configure structlog themselves).
- Provide a small wrapper for obtaining bound loggers.
- Bind the database being operated on into contextvars for the duration of a call.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from mssql_toolkit.settings import Settings


def configure_logging(
    *,
    service_name: str,
    level: str,
    json_logs: bool = True,
    sql_echo: bool = False,
) -> None:
    """
    One log line per administrative event.

    JSON by default; `json_logs=False` renders key/value lines for a terminal.
    SQLAlchemy's own statement logging stays at WARNING unless `sql_echo` is set.
    """

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if sql_echo else logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service_name(service_name),
    ]
    if json_logs:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself.
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: Settings) -> None:
    # Local development gets readable lines; test/prod stay machine-parseable.
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
        sql_echo=settings.sql_echo,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def bind_database_context(database: str) -> Iterator[None]:
    # Previous values are restored on exit.
    with structlog.contextvars.bound_contextvars(database=database):
        yield


# --- Module Notes -----------------------------------------------------------
# The connection-string facade (`db.database`) wraps each call in
# `bind_database_context` so retry warnings carry the database name.
