"""
mssql_toolkit.db.sessions

Connection + optional transaction sessions.

Responsibilities:
- Pair one connection from an engine with an optional transaction.
- Commit on `save_changes`, roll back whatever is left on close.
- Provide a factory that hands out initialized sessions, and a scope helper.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction

SERIALIZABLE = "SERIALIZABLE"


class DatabaseSession:
    """
    A unit of work over a single connection.

    With `isolation_level=None` the session is read-only in spirit: no transaction
    is started and `save_changes` is a no-op. Otherwise a transaction at that
    level is started during `initialize()`.
    """

    def __init__(self, engine: AsyncEngine, *, isolation_level: str | None = None) -> None:
        self._engine = engine
        self._isolation_level = isolation_level
        self._connection: AsyncConnection | None = None
        self._transaction: AsyncTransaction | None = None

    @property
    def isolation_level(self) -> str | None:
        return self._isolation_level

    @property
    def is_initialized(self) -> bool:
        return self._connection is not None and (
            self._isolation_level is None or self._transaction is not None
        )

    @property
    def connection(self) -> AsyncConnection:
        if self._connection is None:
            raise RuntimeError("The session has not been initialized.")
        return self._connection

    @property
    def transaction(self) -> AsyncTransaction | None:
        return self._transaction

    async def initialize(self) -> None:
        if self.is_initialized:
            return
        conn = await self._engine.connect()
        try:
            if self._isolation_level is not None:
                await conn.execution_options(isolation_level=self._isolation_level)
                self._transaction = await conn.begin()
        except BaseException:
            await conn.close()
            raise
        self._connection = conn

    async def save_changes(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            await self._transaction.commit()

    async def close(self) -> None:
        # Closing the connection rolls back an uncommitted transaction.
        conn, self._connection, self._transaction = self._connection, None, None
        if conn is not None:
            await conn.close()

    async def __aenter__(self) -> DatabaseSession:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


class SessionFactory:
    def __init__(self, engine: AsyncEngine, *, isolation_level: str | None = None) -> None:
        self._engine = engine
        self._isolation_level = isolation_level

    @classmethod
    def read_only(cls, engine: AsyncEngine) -> SessionFactory:
        return cls(engine)

    @classmethod
    def transactional(cls, engine: AsyncEngine, isolation_level: str = SERIALIZABLE) -> SessionFactory:
        return cls(engine, isolation_level=isolation_level)

    async def open_session(self) -> DatabaseSession:
        session = DatabaseSession(self._engine, isolation_level=self._isolation_level)
        await session.initialize()
        return session


@asynccontextmanager
async def session_scope(factory: SessionFactory) -> AsyncIterator[DatabaseSession]:
    """
    Explicit session scope for callers without a DI container.

    The session is closed (and uncommitted work rolled back) when the block ends.
    """

    session = await factory.open_session()
    try:
        yield session
    finally:
        await session.close()


# --- Module Notes -----------------------------------------------------------
# Sessions hold a connection, not an ORM `AsyncSession`; use
# `db.commands.execute_*` with `session.connection` to run statements inside the
# session's transaction.
