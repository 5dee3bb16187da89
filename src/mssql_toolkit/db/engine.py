"""
mssql_toolkit.db.engine

Async SQLAlchemy engine + connection helpers.

Responsibilities:
- Create async engines from settings or URLs.
- Open one-shot connections (target or administrative catalog) that are fully
  closed afterwards.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from mssql_toolkit.db.urls import split_admin_url
from mssql_toolkit.settings import Settings

AUTOCOMMIT = "AUTOCOMMIT"


def create_engine(
    url: str | URL,
    *,
    isolation_level: str | None = None,
    connect_timeout: int | None = None,
    pooled: bool = True,
) -> AsyncEngine:
    kwargs: dict[str, Any] = {}
    if isolation_level is not None:
        # As an execution option so connections report it via get_execution_options().
        kwargs["execution_options"] = {"isolation_level": isolation_level}
    if connect_timeout is not None:
        # Both pyodbc and sqlite3 name their connect/busy timeout `timeout`.
        kwargs["connect_args"] = {"timeout": connect_timeout}
    if pooled:
        # pool_pre_ping helps detect stale connections in long-lived processes.
        kwargs["pool_pre_ping"] = True
    else:
        kwargs["poolclass"] = NullPool
    return create_async_engine(url, **kwargs)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_engine(settings.database_url, connect_timeout=settings.connect_timeout_seconds)


@asynccontextmanager
async def open_connection(
    url: str | URL,
    *,
    isolation_level: str | None = None,
    connect_timeout: int | None = None,
) -> AsyncIterator[AsyncConnection]:
    """
    Open a single connection that is not pooled.

    The engine only lives for the duration of the block, so the physical
    connection is really closed on exit (important before dropping a database).
    """

    engine = create_engine(
        url, isolation_level=isolation_level, connect_timeout=connect_timeout, pooled=False
    )
    try:
        async with engine.connect() as conn:
            yield conn
    finally:
        await engine.dispose()


@asynccontextmanager
async def open_admin_connection(
    url: str | URL,
    *,
    admin_database: str,
    connect_timeout: int | None = None,
) -> AsyncIterator[AsyncConnection]:
    # CREATE/DROP DATABASE cannot run inside a user transaction, hence AUTOCOMMIT.
    admin_url, _ = split_admin_url(url, admin_database=admin_database)
    async with open_connection(
        admin_url, isolation_level=AUTOCOMMIT, connect_timeout=connect_timeout
    ) as conn:
        yield conn


# --- Module Notes -----------------------------------------------------------
# Long-lived applications should share one pooled engine (`create_engine_from_settings`)
# and hand its connections to the session factory; the one-shot helpers are for
# administrative work and test fixtures.
