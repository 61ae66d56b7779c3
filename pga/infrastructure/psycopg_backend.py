"""
psycopg 3 pool backend.

Connections are opened in autocommit mode so that the explicit BEGIN/COMMIT
issued by the transaction coordinator are the only transaction boundaries,
and statements go through ``AsyncRawCursor`` so the same `$n` placeholders
work as with asyncpg.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Optional, Sequence

import psycopg
from psycopg import AsyncConnection, AsyncRawCursor
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from pga.core.abstract import ConnectionLease
from pga.domain.models import QueryResult
from pga.infrastructure.base import BasePool
from pga.utils.logging import get_logger

log = get_logger(__name__)


class PsycopgConnection:
    """PooledConnection over a raw psycopg AsyncConnection."""

    def __init__(self, raw: AsyncConnection) -> None:
        self.raw = raw

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        async with AsyncRawCursor(self.raw, row_factory=dict_row) as cur:
            await cur.execute(text, list(params) if params else None)
            rows = await cur.fetchall() if cur.description is not None else []
            return QueryResult.from_status(cur.statusmessage, list(rows))


class PsycopgPool(BasePool[AsyncConnectionPool]):
    """
    ConnectionPool backed by ``psycopg_pool.AsyncConnectionPool``.

    Extra keyword arguments are passed to ``AsyncConnectionPool`` (e.g.
    ``timeout``, ``max_idle``).
    """

    driver = "psycopg"
    transient_errors = (OSError, psycopg.OperationalError, PoolTimeout)

    async def _open(self) -> AsyncConnectionPool:
        pool = AsyncConnectionPool(
            conninfo=self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs={"autocommit": True},
            reconnect_failed=self._reconnect_failed,
            open=False,
            **self.driver_kwargs,
        )
        try:
            await pool.open(wait=True)
        except BaseException:
            await pool.close()
            raise
        return pool

    def _reconnect_failed(self, pool: AsyncConnectionPool) -> None:
        self.on_error(ConnectionError(f"psycopg pool '{pool.name}' failed to reconnect"))

    async def _close(self, pool: AsyncConnectionPool, *args: Any, **kwargs: Any) -> Any:
        return await pool.close(*args, **kwargs)

    async def acquire(self) -> ConnectionLease:
        pool = await self._get_pool()
        raw = await pool.getconn()
        return ConnectionLease(PsycopgConnection(raw), partial(self._release, pool, raw))

    async def _release(
        self, pool: AsyncConnectionPool, raw: AsyncConnection, error: Optional[BaseException]
    ) -> None:
        if error is not None:
            log.debug("[POOL DISCARD] psycopg connection", extra={"error": repr(error)})
            await raw.close()
        await pool.putconn(raw)

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        pool = await self._get_pool()
        async with pool.connection() as raw:
            return await PsycopgConnection(raw).execute(text, params)


__all__ = ["PsycopgConnection", "PsycopgPool"]
