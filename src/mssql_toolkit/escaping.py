"""
mssql_toolkit.escaping

Identifier validation and escaping for SQL Server database names.

Responsibilities:
- Check raw database names against the rules for regular identifiers
  (https://learn.microsoft.com/sql/relational-databases/databases/database-identifiers).
- Bracket-escape names that collide with reserved keywords.
- Quote the few string literals that are not identifiers (attach file paths).

Every value interpolated into administrative statement text passes through here.
"""

from __future__ import annotations

from mssql_toolkit.errors import IdentifierErrorReason, InvalidIdentifierError
from mssql_toolkit.keywords import SQL_SERVER_KEYWORDS, KeywordTable

MAX_DATABASE_NAME_LENGTH = 123

_SPECIAL_SUBSEQUENT_CHARACTERS = frozenset("@$#_")


def is_valid_first_character(character: str) -> bool:
    # str.isalpha follows the Unicode letter categories, so umlauts etc. are accepted.
    return character.isalpha() or character == "_"


def is_valid_subsequent_character(character: str) -> bool:
    return (
        character in _SPECIAL_SUBSEQUENT_CHARACTERS
        or character.isalpha()
        or character.isdecimal()
    )


def pad_with_brackets(identifier: str) -> str:
    if not identifier:
        raise ValueError("identifier must not be empty")
    return f"[{identifier}]"


def check_database_name(database_name: str | None) -> str:
    """
    Validate a raw database name and return its trimmed form.

    Raises `InvalidIdentifierError` whose `reason` tells which rule was violated.
    """

    if database_name is None:
        raise InvalidIdentifierError(
            "The database name must not be None.",
            reason=IdentifierErrorReason.missing,
            value=None,
        )

    normalized = database_name.strip()
    if not normalized:
        raise InvalidIdentifierError(
            f"The database name {database_name!r} must not be empty or contain only white space.",
            reason=IdentifierErrorReason.whitespace,
            value=database_name,
        )
    if len(normalized) > MAX_DATABASE_NAME_LENGTH:
        raise InvalidIdentifierError(
            f'The database name "{normalized}" is too long. '
            f"The maximum length is restricted to {MAX_DATABASE_NAME_LENGTH} characters.",
            reason=IdentifierErrorReason.too_long,
            value=database_name,
        )
    if not is_valid_first_character(normalized[0]):
        raise InvalidIdentifierError(
            f'The database name "{normalized}" does not start with a letter or an underscore "_".',
            reason=IdentifierErrorReason.invalid_first_character,
            value=database_name,
        )
    if not all(is_valid_subsequent_character(character) for character in normalized[1:]):
        raise InvalidIdentifierError(
            f'The database name "{normalized}" contains invalid characters. It must start with '
            'a letter or an underscore "_", and continue with letters, digits, or the signs '
            '"@", "$", "#", or "_".',
            reason=IdentifierErrorReason.invalid_character,
            value=database_name,
        )
    return normalized


def escape_identifier(normalized: str, *, keywords: KeywordTable = SQL_SERVER_KEYWORDS) -> str:
    # Only keywords need brackets: the character whitelist already excludes everything else.
    return pad_with_brackets(normalized) if keywords.is_keyword(normalized) else normalized


def check_and_normalize_database_name(
    database_name: str | None, *, keywords: KeywordTable = SQL_SERVER_KEYWORDS
) -> str:
    """Validate, trim and escape in one step; returns the form usable in DDL."""

    return escape_identifier(check_database_name(database_name), keywords=keywords)


def quote_string_literal(value: str) -> str:
    # T-SQL Unicode literal; embedded quotes are doubled.
    return "N'" + value.replace("'", "''") + "'"
