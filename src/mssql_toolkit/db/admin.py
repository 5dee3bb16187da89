"""
mssql_toolkit.db.admin

Administrative database lifecycle operations for SQL Server.

Responsibilities:
- Existence checks, session killing and single-user switching.
- Create / drop / drop-and-recreate with bounded retries.
- Detach (returning the captured file layout) and attach.

Every function expects an open connection to the administrative catalog (usually
`master`), owned by the caller and not used concurrently. Only validated
`DatabaseName` values are interpolated into statement text.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncConnection

from mssql_toolkit.db.commands import execute_non_query, execute_reader, execute_scalar
from mssql_toolkit.errors import DatabaseNotFoundError
from mssql_toolkit.escaping import quote_string_literal
from mssql_toolkit.names import (
    DatabaseFileLocation,
    DatabaseName,
    DatabasePhysicalLayout,
    ensure_database_name,
)
from mssql_toolkit.observability.logging import get_logger
from mssql_toolkit.retry import RetryPolicy, run_with_retry

log = get_logger(__name__)

_EXISTS_SQL = "SELECT DB_ID(:name);"

_FILES_SQL = """
SELECT type_desc, physical_name
FROM sys.master_files
WHERE database_id = DB_ID(:name)
ORDER BY file_id;"""


async def database_exists(conn: AsyncConnection, database_name: DatabaseName | str) -> bool:
    name = ensure_database_name(database_name)
    return await execute_scalar(conn, _EXISTS_SQL, {"name": name.raw}) is not None


async def kill_all_connections(conn: AsyncConnection, database_name: DatabaseName | str) -> None:
    """Kill every user session connected to the database; a missing database is a no-op."""

    name = ensure_database_name(database_name)
    # Concatenates "kill <session_id>;" for each session and executes the result.
    sql = f"""
SET NOCOUNT ON;
DECLARE @kill varchar(max) = '';
SELECT @kill = @kill + 'kill ' + CONVERT(varchar(5), session_id) + ';'
FROM sys.dm_exec_sessions
WHERE database_id = DB_ID('{name.raw}') AND
      is_user_process = 1 AND
      session_id <> @@SPID;
EXEC(@kill);"""
    await execute_non_query(conn, sql)
    log.debug("connections_killed", database=name.raw)


async def set_single_user(conn: AsyncConnection, database_name: DatabaseName | str) -> None:
    name = ensure_database_name(database_name)
    sql = f"ALTER DATABASE {name.identifier} SET SINGLE_USER WITH ROLLBACK IMMEDIATE;"
    await execute_non_query(conn, sql)


async def try_create_database(
    conn: AsyncConnection,
    database_name: DatabaseName | str,
    policy: RetryPolicy | None = None,
) -> bool:
    """Create the database unless it exists. Returns True when it was created."""

    name = ensure_database_name(database_name)
    policy = policy or RetryPolicy()
    sql = f"""
SET NOCOUNT ON;
DECLARE @DbId INT;
SELECT @DbId = DB_ID('{name.raw}');
IF @DbId IS NULL
    CREATE DATABASE {name.identifier};
SELECT @DbId;"""

    async def attempt() -> bool:
        return await execute_scalar(conn, sql) is None

    created = await run_with_retry(attempt, policy, name="try_create_database")
    if created:
        log.info("database_created", database=name.raw)
    return created


async def try_drop_database(
    conn: AsyncConnection,
    database_name: DatabaseName | str,
    policy: RetryPolicy | None = None,
) -> bool:
    """Kill sessions and drop the database if it exists. Returns True when it was dropped."""

    name = ensure_database_name(database_name)
    policy = policy or RetryPolicy()
    sql = f"""
SET NOCOUNT ON;
DECLARE @DbId INT;
SELECT @DbId = DB_ID('{name.raw}');
IF @DbId IS NOT NULL
    DROP DATABASE {name.identifier};
SELECT @DbId;"""

    async def attempt() -> bool:
        await kill_all_connections(conn, name)
        return await execute_scalar(conn, sql) is not None

    dropped = await run_with_retry(attempt, policy, name="try_drop_database")
    if dropped:
        log.info("database_dropped", database=name.raw)
    return dropped


async def drop_and_create_database(
    conn: AsyncConnection,
    database_name: DatabaseName | str,
    policy: RetryPolicy | None = None,
) -> bool:
    """
    Leave an empty database behind, dropping an existing one first.

    Drop and create run in a single batch. Returns True when a database was
    dropped before it was created.
    """

    name = ensure_database_name(database_name)
    policy = policy or RetryPolicy()
    sql = f"""
SET NOCOUNT ON;
DECLARE @DbId INT;
SELECT @DbId = DB_ID('{name.raw}');
IF @DbId IS NOT NULL
    DROP DATABASE {name.identifier};
CREATE DATABASE {name.identifier};
SELECT @DbId;"""

    async def attempt() -> bool:
        await kill_all_connections(conn, name)
        return await execute_scalar(conn, sql) is not None

    dropped = await run_with_retry(attempt, policy, name="drop_and_create_database")
    log.info("database_recreated", database=name.raw, dropped=dropped)
    return dropped


async def get_physical_layout(
    conn: AsyncConnection, database_name: DatabaseName | str
) -> DatabasePhysicalLayout:
    name = ensure_database_name(database_name)
    files = [
        DatabaseFileLocation(kind=row[0], path=row[1])
        async for row in execute_reader(conn, _FILES_SQL, {"name": name.raw})
    ]
    if not files:
        raise DatabaseNotFoundError(name.raw)
    return DatabasePhysicalLayout(name, files)


async def detach_database(
    conn: AsyncConnection,
    database_name: DatabaseName | str,
    policy: RetryPolicy | None = None,
) -> DatabasePhysicalLayout:
    """
    Detach the database and return the files it consisted of.

    The layout is read before detaching, since the server forgets it afterwards.
    Each attempt switches the database to single-user mode first.
    """

    name = ensure_database_name(database_name)
    policy = policy or RetryPolicy()
    layout = await get_physical_layout(conn, name)
    sql = f"EXEC sp_detach_db @dbname = N'{name.raw}', @skipchecks = 'true';"

    async def attempt() -> None:
        await set_single_user(conn, name)
        await execute_non_query(conn, sql)

    await run_with_retry(attempt, policy, name="detach_database")
    log.info("database_detached", database=name.raw, files=len(layout.files))
    return layout


def create_attach_statement(database_name: DatabaseName, layout: DatabasePhysicalLayout) -> str:
    file_specs = ",\n".join(
        f"    (FILENAME = {quote_string_literal(location.path)})" for location in layout.files
    )
    return f"CREATE DATABASE {database_name.identifier} ON\n{file_specs}\nFOR ATTACH;"


async def attach_database(
    conn: AsyncConnection,
    layout: DatabasePhysicalLayout,
    *,
    database_name: DatabaseName | str | None = None,
) -> None:
    """Attach previously detached files, under `database_name` or the layout's name."""

    if layout is None:
        raise ValueError("layout must not be None.")
    name = ensure_database_name(database_name) if database_name is not None else layout.database_name
    await execute_non_query(conn, create_attach_statement(name, layout))
    log.info("database_attached", database=name.raw, files=len(layout.files))


# --- Module Notes -----------------------------------------------------------
# Drops kill user sessions first; detach switches to single-user mode instead.
# sp_detach_db needs exclusive access to the database.
