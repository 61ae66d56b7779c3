"""
Pytest configuration for the pga adapter.

Provides fixtures for:
- Settings and DSN for integration tests (overridable via environment)
- In-memory fake pools with configurable per-statement latency and failures
- Recording error-first callbacks
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from pga.config import Settings, build_dsn
from pga.core.abstract import ConnectionLease
from pga.domain.models import QueryResult


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        db_driver=os.getenv("DB_DRIVER", "asyncpg"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


class FakeConnection:
    """PooledConnection double that records every statement it runs."""

    def __init__(self, pool: "FakePool", number: int) -> None:
        self.pool = pool
        self.number = number
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        self.calls.append((text, tuple(params)))
        return await self.pool.respond(text, params)

    @property
    def texts(self) -> List[str]:
        return [text for text, _ in self.calls]


class FakePool:
    """
    ConnectionPool double.

    Parameters
    ----------
    failures : dict
        Statement text -> exception raised when that text executes.
    delays : dict
        Statement text -> seconds to sleep before answering.
    acquire_error : Exception, optional
        Raised by `acquire` instead of leasing a connection.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, BaseException]] = None,
        delays: Optional[Dict[str, float]] = None,
        acquire_error: Optional[BaseException] = None,
    ) -> None:
        self.failures = failures or {}
        self.delays = delays or {}
        self.acquire_error = acquire_error
        self.connections: List[FakeConnection] = []
        self.releases: List[Tuple[FakeConnection, Optional[BaseException]]] = []
        self.oneshot_calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.completion_order: List[str] = []
        self.shutdown_calls: List[Tuple[tuple, dict]] = []

    async def respond(self, text: str, params: Sequence[Any]) -> QueryResult:
        await asyncio.sleep(self.delays.get(text, 0))
        if text in self.failures:
            self.completion_order.append(text)
            raise self.failures[text]
        self.completion_order.append(text)
        return QueryResult(
            rows=[{"text": text, "params": list(params)}],
            row_count=1,
            command=text.split()[0].upper(),
        )

    async def acquire(self) -> ConnectionLease:
        await asyncio.sleep(0)
        if self.acquire_error is not None:
            raise self.acquire_error
        connection = FakeConnection(self, len(self.connections))
        self.connections.append(connection)

        async def release(error: Optional[BaseException]) -> None:
            self.releases.append((connection, error))

        return ConnectionLease(connection, release)

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        self.oneshot_calls.append((text, tuple(params)))
        return await self.respond(text, params)

    def shutdown(self, *args: Any, **kwargs: Any) -> str:
        self.shutdown_calls.append((args, kwargs))
        return "shutdown-result"


class CallbackRecorder:
    """Error-first callback that records every invocation."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Optional[BaseException], Any]] = []
        self._first: asyncio.Future = asyncio.get_running_loop().create_future()

    def __call__(self, error: Optional[BaseException], result: Any) -> None:
        self.calls.append((error, result))
        if not self._first.done():
            self._first.set_result((error, result))

    async def wait(self, timeout: float = 1.0) -> Tuple[Optional[BaseException], Any]:
        return await asyncio.wait_for(asyncio.shield(self._first), timeout)


@pytest.fixture
def make_pool():
    """Factory for FakePool instances."""
    return FakePool


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def callback_recorder():
    """Factory for CallbackRecorder; call it inside a running event loop."""
    return CallbackRecorder
