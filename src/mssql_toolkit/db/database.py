"""
mssql_toolkit.db.database

Administrative operations addressed by the URL of the *target* database.

Responsibilities:
- Derive the administrative URL and the database name from a target URL.
- Open a one-shot administrative connection per call and close it afterwards.
- Fall back to `Settings` for the URL, administrative catalog and retry policy.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection

from mssql_toolkit.db import admin
from mssql_toolkit.db.engine import open_admin_connection
from mssql_toolkit.db.urls import is_administrative_catalog, select_attach_name, split_admin_url
from mssql_toolkit.errors import AdministrativeDatabaseError
from mssql_toolkit.names import DatabaseName, DatabasePhysicalLayout
from mssql_toolkit.observability.logging import bind_database_context
from mssql_toolkit.retry import RetryPolicy
from mssql_toolkit.settings import Settings, get_settings


def _resolve(
    url: str | URL | None, settings: Settings | None
) -> tuple[str | URL, str | None, Settings]:
    settings = settings or get_settings()
    target_url = url if url is not None else settings.database_url
    _, catalog = split_admin_url(target_url, admin_database=settings.admin_database)
    return target_url, catalog, settings


@asynccontextmanager
async def _admin_connection(
    target_url: str | URL, database: str, settings: Settings
) -> AsyncIterator[AsyncConnection]:
    with bind_database_context(database):
        async with open_admin_connection(
            target_url,
            admin_database=settings.admin_database,
            connect_timeout=settings.connect_timeout_seconds,
        ) as conn:
            yield conn


def _target_name(catalog: str | None, settings: Settings, *, destructive: bool = False) -> DatabaseName:
    name = DatabaseName(catalog)  # type: ignore[arg-type]
    if destructive and is_administrative_catalog(name.raw, admin_database=settings.admin_database):
        raise AdministrativeDatabaseError(name.raw)
    return name


def _policy(policy: RetryPolicy | None, settings: Settings) -> RetryPolicy:
    return policy if policy is not None else RetryPolicy.from_settings(settings)


async def database_exists_url(
    url: str | URL | None = None, *, settings: Settings | None = None
) -> bool:
    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.database_exists(conn, name)


async def try_create_database_url(
    url: str | URL | None = None,
    policy: RetryPolicy | None = None,
    *,
    settings: Settings | None = None,
) -> bool:
    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings)
    policy = _policy(policy, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.try_create_database(conn, name, policy)


async def try_drop_database_url(
    url: str | URL | None = None,
    policy: RetryPolicy | None = None,
    *,
    settings: Settings | None = None,
) -> bool:
    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings, destructive=True)
    policy = _policy(policy, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.try_drop_database(conn, name, policy)


async def drop_and_create_database_url(
    url: str | URL | None = None,
    policy: RetryPolicy | None = None,
    *,
    settings: Settings | None = None,
) -> bool:
    """Typical test-fixture entry point: guarantees an existing, empty database."""

    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings, destructive=True)
    policy = _policy(policy, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.drop_and_create_database(conn, name, policy)


async def get_physical_layout_url(
    url: str | URL | None = None, *, settings: Settings | None = None
) -> DatabasePhysicalLayout:
    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.get_physical_layout(conn, name)


async def detach_database_url(
    url: str | URL | None = None,
    policy: RetryPolicy | None = None,
    *,
    settings: Settings | None = None,
) -> DatabasePhysicalLayout:
    target_url, catalog, settings = _resolve(url, settings)
    name = _target_name(catalog, settings, destructive=True)
    policy = _policy(policy, settings)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        return await admin.detach_database(conn, name, policy)


async def attach_database_url(
    layout: DatabasePhysicalLayout,
    url: str | URL | None = None,
    *,
    settings: Settings | None = None,
) -> None:
    """
    Attach `layout` on the server of `url`.

    The database is named after the URL's catalog unless that catalog is empty or
    the administrative one, in which case the name captured at detach time is used.
    """

    target_url, catalog, settings = _resolve(url, settings)
    name = select_attach_name(catalog, layout.database_name, admin_database=settings.admin_database)
    async with _admin_connection(target_url, name.raw, settings) as conn:
        await admin.attach_database(conn, layout, database_name=name)
