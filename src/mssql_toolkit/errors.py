"""
mssql_toolkit.errors

Exception types raised by the toolkit itself.

Responsibilities:
- Signal invalid identifiers and invalid retry configuration synchronously.
- Signal detach/inventory requests for databases without registered files.
- Refuse destructive operations aimed at the administrative catalog.

Engine failures are SQLAlchemy `DBAPIError`s and are never wrapped; cancellation
is `asyncio.CancelledError`.
"""

from __future__ import annotations

import enum


class MssqlToolkitError(Exception):
    pass


class IdentifierErrorReason(enum.StrEnum):
    missing = "MISSING"
    whitespace = "WHITESPACE"
    too_long = "TOO_LONG"
    invalid_first_character = "INVALID_FIRST_CHARACTER"
    invalid_character = "INVALID_CHARACTER"


class InvalidIdentifierError(MssqlToolkitError, ValueError):
    def __init__(self, message: str, *, reason: IdentifierErrorReason, value: str | None) -> None:
        super().__init__(message)
        self.reason = reason
        self.value = value


class InvalidRetryConfigurationError(MssqlToolkitError, ValueError):
    pass


class DatabaseNotFoundError(MssqlToolkitError, LookupError):
    def __init__(self, database: str) -> None:
        super().__init__(f'The database "{database}" has no registered files on the server.')
        self.database = database


class AdministrativeDatabaseError(MssqlToolkitError, ValueError):
    def __init__(self, database: str) -> None:
        super().__init__(
            f'Refusing to drop or detach "{database}": it is the administrative database.'
        )
        self.database = database
