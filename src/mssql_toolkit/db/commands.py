"""
mssql_toolkit.db.commands

Command execution helpers over `AsyncConnection`.

Responsibilities:
- Run non-query, scalar and reader commands from plain SQL text.
- Optionally wrap a single command in its own transaction at a given isolation level.
- Offer URL-based variants that open a one-shot connection.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import URL, CursorResult, Row
from sqlalchemy.ext.asyncio import AsyncConnection

from mssql_toolkit.db.engine import open_connection

Params = Mapping[str, Any]


def _require_sql(sql: str) -> None:
    if not sql or not sql.strip():
        raise ValueError("sql must not be empty or white space.")


async def _execute(
    conn: AsyncConnection,
    sql: str,
    params: Params | None,
    isolation_level: str | None,
) -> tuple[int, Any]:
    """
    Execute `sql` and return its row count together with its first scalar (or None).

    Both are read before committing so they survive the end of the transaction.
    """

    _require_sql(sql)
    statement = text(sql)

    if isolation_level is not None:
        # The command gets its own transaction; fails if the caller already opened one.
        previous = conn.sync_connection.get_execution_options().get(
            "isolation_level", conn.sync_connection.default_isolation_level
        )
        await conn.execution_options(isolation_level=isolation_level)
        try:
            async with conn.begin():
                result = await conn.execute(statement, params or {})
                return result.rowcount, _first_scalar(result)
        finally:
            await conn.execution_options(isolation_level=previous)

    # Commit-as-you-go, unless the caller already runs a transaction on this connection.
    owns_transaction = not conn.in_transaction()
    result = await conn.execute(statement, params or {})
    outcome = result.rowcount, _first_scalar(result)
    if owns_transaction and conn.in_transaction():
        await conn.commit()
    return outcome


def _first_scalar(result: CursorResult[Any]) -> Any:
    if not result.returns_rows:
        return None
    return result.scalar()


async def execute_non_query(
    conn: AsyncConnection,
    sql: str,
    params: Params | None = None,
    *,
    isolation_level: str | None = None,
) -> int:
    """Run a statement and return the number of affected rows (-1 when unknown)."""

    rowcount, _ = await _execute(conn, sql, params, isolation_level)
    return rowcount


async def execute_scalar(
    conn: AsyncConnection,
    sql: str,
    params: Params | None = None,
    *,
    isolation_level: str | None = None,
) -> Any:
    """Run a statement and return the first column of the first row, or None."""

    _, value = await _execute(conn, sql, params, isolation_level)
    return value


async def execute_reader(
    conn: AsyncConnection,
    sql: str,
    params: Params | None = None,
) -> AsyncIterator[Row[Any]]:
    """Stream the rows of a query; the cursor is closed when iteration stops."""

    _require_sql(sql)
    result = await conn.stream(text(sql), params or {})
    try:
        async for row in result:
            yield row
    finally:
        await result.close()


async def execute_non_query_url(
    url: str | URL,
    sql: str,
    params: Params | None = None,
    *,
    isolation_level: str | None = None,
) -> int:
    async with open_connection(url) as conn:
        return await execute_non_query(conn, sql, params, isolation_level=isolation_level)


async def execute_scalar_url(
    url: str | URL,
    sql: str,
    params: Params | None = None,
    *,
    isolation_level: str | None = None,
) -> Any:
    async with open_connection(url) as conn:
        return await execute_scalar(conn, sql, params, isolation_level=isolation_level)
