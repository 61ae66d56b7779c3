"""
Pool interfaces and the connection lease contract.

Concrete pool backends (asyncpg, psycopg) implement the ConnectionPool
protocol so the transaction coordinator, parallel executor and adapter facade
stay independent of any particular driver.
"""

from __future__ import annotations

from typing import (
    Any,
    Awaitable,
    Callable,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from pga.domain.models import QueryResult
from pga.errors import LeaseReleasedError


@runtime_checkable
class PooledConnection(Protocol):
    """
    A single connection checked out of a pool.
    """

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        """
        Execute one statement on this specific connection.

        Parameters
        ----------
        text : str
            SQL text using `$n` placeholders.
        params : Sequence[Any]
            Ordered values bound to the placeholders.

        Returns
        -------
        QueryResult
            Rows, row count and command tag of the statement.
        """
        ...


ReleaseFn = Callable[[Optional[BaseException]], Awaitable[None]]


class ConnectionLease:
    """
    Exclusive, temporary ownership of one pooled connection.

    `release` hands the connection back to the pool and may be awaited exactly
    once. Passing an error asks the pool to discard the connection rather than
    reuse it.
    """

    def __init__(self, connection: PooledConnection, release: ReleaseFn) -> None:
        self._connection = connection
        self._release = release
        self._released = False

    @property
    def connection(self) -> PooledConnection:
        if self._released:
            raise LeaseReleasedError("connection lease has already been released")
        return self._connection

    @property
    def released(self) -> bool:
        return self._released

    async def release(self, error: Optional[BaseException] = None) -> None:
        if self._released:
            raise LeaseReleasedError("connection lease has already been released")
        self._released = True
        await self._release(error)


@runtime_checkable
class ConnectionPool(Protocol):
    """
    Common interface every pool backend must implement.
    """

    async def acquire(self) -> ConnectionLease:
        """Check out a dedicated connection."""
        ...

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run a one-shot statement on whichever connection the pool picks."""
        ...

    def shutdown(self, *args: Any, **kwargs: Any) -> Any:
        """Terminate all pooled connections."""
        ...


__all__ = [
    "PooledConnection",
    "ConnectionLease",
    "ConnectionPool",
    "ReleaseFn",
]
