"""
asyncpg pool backend (default).

asyncpg speaks PostgreSQL's binary protocol natively and uses `$n`
placeholders, so statements are passed through unchanged. Statements run
through a prepared statement so both the rows and the command status
(``INSERT 0 1``) are available for the QueryResult. Parameterless text holding
several commands runs through the simple query protocol and reports only the
last command status, without rows.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Optional, Sequence

import asyncpg

from pga.core.abstract import ConnectionLease
from pga.domain.models import QueryResult
from pga.infrastructure.base import BasePool
from pga.utils.logging import get_logger

log = get_logger(__name__)

_TRANSACTION_CONTROL = frozenset({"BEGIN", "COMMIT", "ROLLBACK"})


def _uses_simple_protocol(text: str, params: Sequence[Any]) -> bool:
    """
    Parameterless transaction control and multi-command text skip the
    prepared-statement path; multiple commands cannot be prepared.
    """
    if params:
        return False
    body = text.strip().rstrip(";")
    return body.upper() in _TRANSACTION_CONTROL or ";" in body


class AsyncpgConnection:
    """PooledConnection over a raw asyncpg connection."""

    def __init__(self, raw: asyncpg.Connection) -> None:
        self.raw = raw

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        if _uses_simple_protocol(text, params):
            status = await self.raw.execute(text)
            return QueryResult.from_status(status, [])

        prepared = await self.raw.prepare(text)
        records = await prepared.fetch(*params)
        return QueryResult.from_status(
            prepared.get_statusmsg(), [dict(record) for record in records]
        )


class AsyncpgPool(BasePool[asyncpg.Pool]):
    """
    ConnectionPool backed by ``asyncpg.create_pool``.

    Extra keyword arguments are passed to ``asyncpg.create_pool`` (e.g.
    ``command_timeout``, ``statement_cache_size``).
    """

    driver = "asyncpg"
    transient_errors = (
        OSError,
        asyncpg.CannotConnectNowError,
        asyncpg.TooManyConnectionsError,
    )

    async def _open(self) -> asyncpg.Pool:
        return await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            init=self._init_connection,
            **self.driver_kwargs,
        )

    async def _init_connection(self, raw: asyncpg.Connection) -> None:
        raw.add_termination_listener(self._on_terminated)

    def _on_terminated(self, raw: asyncpg.Connection) -> None:
        if not self._closed:
            self.on_error(ConnectionError("asyncpg connection terminated unexpectedly"))

    async def _close(self, pool: asyncpg.Pool, *args: Any, **kwargs: Any) -> Any:
        return await pool.close(*args, **kwargs)

    async def acquire(self) -> ConnectionLease:
        pool = await self._get_pool()
        raw = await pool.acquire()
        return ConnectionLease(AsyncpgConnection(raw), partial(self._release, pool, raw))

    async def _release(
        self, pool: asyncpg.Pool, raw: asyncpg.Connection, error: Optional[BaseException]
    ) -> None:
        if error is not None:
            log.debug("[POOL DISCARD] asyncpg connection", extra={"error": repr(error)})
            raw.terminate()
        await pool.release(raw)

    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:
        pool = await self._get_pool()
        async with pool.acquire() as raw:
            return await AsyncpgConnection(raw).execute(text, params)


__all__ = ["AsyncpgConnection", "AsyncpgPool"]
