"""
tests.conftest

Shared fixtures.

Responsibilities:
- A fake SQL Server connection for the administrative operations.
- A file-backed sqlite+aiosqlite engine for command and session tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from mssql_toolkit.db.engine import create_engine
from tests.fakes import FakeSqlServer


@pytest.fixture
def server() -> FakeSqlServer:
    return FakeSqlServer()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'toolkit.db'}"


@pytest_asyncio.fixture
async def sqlite_engine(sqlite_url: str) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(sqlite_url)
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE TABLE people (id INTEGER PRIMARY KEY, name VARCHAR(100) NOT NULL, age INTEGER)"
        )
        await conn.exec_driver_sql(
            "INSERT INTO people (name, age) VALUES ('Alice', 31), ('Bob', 42), ('Carol', 27)"
        )
    try:
        yield engine
    finally:
        await engine.dispose()
