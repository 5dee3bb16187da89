"""
tests.test_retry

Retry policy validation and the retry loop.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import DBAPIError

from mssql_toolkit.errors import InvalidRetryConfigurationError
from mssql_toolkit.retry import RetryPolicy, run_with_retry
from mssql_toolkit.settings import Settings
from tests.fakes import engine_error


class FlakyOperation:
    def __init__(self, failures: int, result: str = "done") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0
        self.errors = [engine_error(f"failure {i}") for i in range(failures)]

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.errors[self.calls - 1]
        return self.result


def test_defaults() -> None:
    policy = RetryPolicy()

    assert policy.retry_count == 3
    assert policy.interval_ms == 750
    assert policy.max_attempts == 4
    assert policy.on_failure is None


@pytest.mark.parametrize(("retry_count", "interval_ms"), [(-1, 750), (3, 0), (3, -5)])
def test_invalid_configuration_is_rejected(retry_count: int, interval_ms: int) -> None:
    with pytest.raises(InvalidRetryConfigurationError):
        RetryPolicy(retry_count=retry_count, interval_ms=interval_ms)


def test_zero_retries_is_allowed() -> None:
    assert RetryPolicy(retry_count=0).max_attempts == 1


def test_from_settings() -> None:
    policy = RetryPolicy.from_settings(Settings(retry_count=5, retry_interval_ms=20))

    assert policy.retry_count == 5
    assert policy.interval_ms == 20


@pytest.mark.asyncio
async def test_returns_first_success_without_calling_observer() -> None:
    observed: list[DBAPIError] = []
    operation = FlakyOperation(failures=0)

    result = await run_with_retry(
        operation, RetryPolicy(interval_ms=1, on_failure=observed.append), name="op"
    )

    assert result == "done"
    assert operation.calls == 1
    assert observed == []


@pytest.mark.asyncio
async def test_recovers_after_transient_failures() -> None:
    observed: list[DBAPIError] = []
    operation = FlakyOperation(failures=2)

    result = await run_with_retry(
        operation, RetryPolicy(retry_count=3, interval_ms=1, on_failure=observed.append), name="op"
    )

    assert result == "done"
    assert operation.calls == 3
    assert observed == operation.errors


@pytest.mark.asyncio
async def test_exhausted_retries_rethrow_last_error_unchanged() -> None:
    observed: list[DBAPIError] = []
    operation = FlakyOperation(failures=3)

    with pytest.raises(DBAPIError) as exc_info:
        await run_with_retry(
            operation,
            RetryPolicy(retry_count=2, interval_ms=1, on_failure=observed.append),
            name="op",
        )

    assert operation.calls == 3
    assert len(observed) == 3
    assert exc_info.value is operation.errors[-1]


@pytest.mark.asyncio
async def test_other_exceptions_are_not_retried() -> None:
    calls = 0

    async def operation() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await run_with_retry(operation, RetryPolicy(interval_ms=1), name="op")

    assert calls == 1


@pytest.mark.asyncio
async def test_cancellation_during_delay_stops_further_attempts() -> None:
    first_failure = asyncio.Event()
    operation = FlakyOperation(failures=10)
    policy = RetryPolicy(retry_count=5, interval_ms=60_000, on_failure=lambda _: first_failure.set())

    task = asyncio.create_task(run_with_retry(operation, policy, name="op"))
    await first_failure.wait()
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_timeout_surfaces_as_timeout_not_engine_error() -> None:
    operation = FlakyOperation(failures=10)

    with pytest.raises(TimeoutError):
        async with asyncio.timeout(0.05):
            await run_with_retry(operation, RetryPolicy(retry_count=5, interval_ms=60_000), name="op")

    assert operation.calls == 1
