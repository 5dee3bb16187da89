"""
mssql_toolkit.db

Database access package (SQLAlchemy async).

Responsibilities:
- Provide engine/connection helpers, command helpers, sessions and the
  administrative operations.
"""

# Package marker.
