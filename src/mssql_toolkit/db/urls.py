"""
mssql_toolkit.db.urls

Connection-string (SQLAlchemy URL) handling.

Responsibilities:
- Extract the target catalog from a URL.
- Derive the administrative URL by substituting the catalog.
- Decide which name an attached database gets.
"""

from __future__ import annotations

from sqlalchemy.engine import URL, make_url

from mssql_toolkit.names import DatabaseName


def split_admin_url(url: str | URL, *, admin_database: str) -> tuple[URL, str | None]:
    """
    Return `(admin_url, catalog)`.

    Most engines refuse to create or drop the database a connection is using, so
    administrative statements run against `admin_database` instead.
    """

    parsed = make_url(url)
    catalog = parsed.database or None
    return parsed.set(database=admin_database or None), catalog


def is_administrative_catalog(catalog: str | None, *, admin_database: str) -> bool:
    if catalog is None or not catalog.strip():
        return True
    return catalog.strip().casefold() == admin_database.casefold()


def select_attach_name(
    catalog: str | None, layout_name: DatabaseName, *, admin_database: str
) -> DatabaseName:
    # An explicit, non-administrative catalog wins over the name captured at detach time.
    if is_administrative_catalog(catalog, admin_database=admin_database):
        return layout_name
    return DatabaseName(catalog)  # type: ignore[arg-type]
