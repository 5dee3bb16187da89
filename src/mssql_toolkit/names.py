"""
mssql_toolkit.names

Value types describing a database and its physical files.

Responsibilities:
- `DatabaseName`: validated, case-insensitive database identifier.
- `DatabaseFileLocation` / `DatabasePhysicalLayout`: file inventory captured by
  detach and consumed by attach.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath, PureWindowsPath

from mssql_toolkit.errors import IdentifierErrorReason, InvalidIdentifierError
from mssql_toolkit.escaping import check_database_name, escape_identifier
from mssql_toolkit.keywords import SQL_SERVER_KEYWORDS, KeywordTable


class DatabaseName:
    """
    A string that is a valid SQL Server database identifier.

    `raw` is the trimmed name (safe inside `DB_ID('...')`), `identifier` is the
    form for DDL, bracket-escaped when the name is a reserved keyword.
    Instances compare and hash case-insensitively.
    """

    __slots__ = ("_raw", "_identifier", "_key")

    def __init__(self, database_name: str, *, keywords: KeywordTable = SQL_SERVER_KEYWORDS) -> None:
        raw = check_database_name(database_name)
        self._raw = raw
        self._identifier = escape_identifier(raw, keywords=keywords)
        self._key = raw.casefold()

    @property
    def raw(self) -> str:
        return self._raw

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def is_escaped(self) -> bool:
        return self._identifier != self._raw

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DatabaseName):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"DatabaseName({self._raw!r})"

    def __setattr__(self, name: str, value: object) -> None:
        if hasattr(self, "_key"):
            raise AttributeError("DatabaseName is immutable")
        object.__setattr__(self, name, value)


def normalize_database_name(
    database_name: str | None, *, keywords: KeywordTable = SQL_SERVER_KEYWORDS
) -> DatabaseName:
    return DatabaseName(database_name, keywords=keywords)  # type: ignore[arg-type]


def ensure_database_name(value: DatabaseName | str | None) -> DatabaseName:
    """Accept a DatabaseName or a raw string; None is never a valid database name."""

    if isinstance(value, DatabaseName):
        return value
    if value is None:
        raise InvalidIdentifierError(
            "A database name is required.",
            reason=IdentifierErrorReason.missing,
            value=None,
        )
    return DatabaseName(value)


class DatabaseFileType(enum.StrEnum):
    # Values of the `type_desc` column of sys.database_files / sys.master_files.
    rows = "ROWS"
    log = "LOG"
    file_stream = "FILESTREAM"
    full_text = "FULLTEXT"


@dataclass(frozen=True, slots=True)
class DatabaseFileLocation:
    kind: str
    path: str

    def __post_init__(self) -> None:
        if not self.kind or not self.kind.strip():
            raise ValueError("The file kind must not be empty.")
        if not self.path or not self.path.strip():
            raise ValueError("The file path must not be empty.")

    @property
    def file_name(self) -> str:
        return _pure_path(self.path).name


@dataclass(frozen=True, slots=True, init=False)
class DatabasePhysicalLayout:
    database_name: DatabaseName
    files: tuple[DatabaseFileLocation, ...]

    def __init__(self, database_name: DatabaseName | str, files: Iterable[DatabaseFileLocation]) -> None:
        object.__setattr__(self, "database_name", ensure_database_name(database_name))
        object.__setattr__(self, "files", tuple(files))
        if not self.files:
            raise ValueError(f'The layout of "{self.database_name}" must contain at least one file.')

    def relocate(self, directory: str) -> DatabasePhysicalLayout:
        """Return a layout whose files keep their names but live in `directory`."""

        target = _pure_path(directory)
        return DatabasePhysicalLayout(
            self.database_name,
            (
                DatabaseFileLocation(kind=location.kind, path=str(target / location.file_name))
                for location in self.files
            ),
        )


def _pure_path(path: str) -> PurePath:
    # Paths come from the server, which is usually Windows even when this process isn't.
    if "\\" in path or (len(path) > 1 and path[1] == ":"):
        return PureWindowsPath(path)
    return PurePosixPath(path)
