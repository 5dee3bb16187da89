"""
mssql_toolkit.retry

Bounded retry loop for administrative operations.

Responsibilities:
- Validate retry configuration before any I/O happens.
- Re-run an operation on engine errors with a fixed delay between attempts.
- Report every caught failure to an optional observer and the log.

System processes (full-text indexing, replication agents, ...) can keep a lock on a
database right after its user sessions were killed. They cannot be killed, so the
operation is retried in the hope that they disconnect within a bounded window.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import DBAPIError

from mssql_toolkit.errors import InvalidRetryConfigurationError
from mssql_toolkit.observability.logging import get_logger
from mssql_toolkit.settings import Settings

log = get_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_COUNT = 3
DEFAULT_INTERVAL_MS = 750


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    # retry_count=3 means up to four attempts in total.
    retry_count: int = DEFAULT_RETRY_COUNT
    interval_ms: int = DEFAULT_INTERVAL_MS
    on_failure: Callable[[DBAPIError], None] | None = None

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise InvalidRetryConfigurationError(
                f"retry_count must be greater than or equal to 0, but it is {self.retry_count}."
            )
        if self.interval_ms <= 0:
            raise InvalidRetryConfigurationError(
                f"interval_ms must be greater than 0, but it is {self.interval_ms}."
            )

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1

    @classmethod
    def from_settings(
        cls, settings: Settings, *, on_failure: Callable[[DBAPIError], None] | None = None
    ) -> RetryPolicy:
        return cls(
            retry_count=settings.retry_count,
            interval_ms=settings.retry_interval_ms,
            on_failure=on_failure,
        )


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    name: str,
) -> T:
    """
    Await `operation()` until it succeeds or `policy` is exhausted.

    Only `DBAPIError` is retried and it is re-raised unchanged. Cancellation
    (`asyncio.CancelledError`) is never caught, so it wins over a pending engine
    error, including while sleeping between attempts.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except DBAPIError as exc:
            if policy.on_failure is not None:
                policy.on_failure(exc)
            if attempt > policy.retry_count:
                log.error("admin_operation_exhausted", operation=name, attempts=attempt)
                raise
            log.warning(
                "admin_operation_failed",
                operation=name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                error=str(exc.orig) if exc.orig is not None else str(exc),
            )
            attempt += 1
            await asyncio.sleep(policy.interval_ms / 1000)
