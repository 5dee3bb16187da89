"""
mssql_toolkit.observability

Logging helpers.

Responsibilities:
- structlog configuration and logger access.
"""

# Package marker.
