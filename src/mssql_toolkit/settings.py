"""
mssql_toolkit.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the target database and administrative catalog.
- Carry the default retry behavior of administrative operations.
- Offer a cached settings instance for callers that don't pass explicit values.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MSSQL_TOOLKIT_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "mssql-toolkit"
    log_level: str = "INFO"
    # Emit SQLAlchemy statement logs (sqlalchemy.engine at INFO).
    sql_echo: bool = False

    # SQLAlchemy URL of the target database; the catalog component names the database
    # that administrative operations act upon.
    database_url: str = Field(
        default="mssql+aioodbc://localhost/mssql_toolkit?driver=ODBC+Driver+18+for+SQL+Server",
        repr=False,
    )
    # Catalog substituted into the URL for administrative connections.
    admin_database: str = "master"
    connect_timeout_seconds: int = Field(default=30, gt=0)

    # Administrative operations (create/drop/recreate/detach)
    retry_count: int = Field(default=3, ge=0)
    retry_interval_ms: int = Field(default=750, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each facade call.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# `database_url` is hidden from repr because ODBC URLs routinely embed credentials.
