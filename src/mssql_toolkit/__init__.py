"""
mssql_toolkit

Async helpers for SQL Server database administration on top of SQLAlchemy.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects; import from
# `mssql_toolkit.db.admin`, `mssql_toolkit.names` etc. directly.
