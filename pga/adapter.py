"""
PostgreSQL adapter facade.

Wraps one connection pool and offers single queries, parallel queries and
transactions. Every operation supports two calling styles, chosen per call:

    db = PostgreSQLAdapter({"db_name": "app"})

    # future style: await the returned asyncio.Future
    rows = await db.query("SELECT * FROM test WHERE id = $1", [1])

    # callback style: error-first callback, scheduled on the event loop
    def on_done(error, results):
        ...
    db.transact([
        "SELECT COUNT(*) FROM test",
        ("INSERT INTO test (name) VALUES ($1)", ["Name!"]),
        db.sql("SELECT * FROM test WHERE name = {}", "Name!"),
    ], on_done)

Both styles require a running event loop.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from pga.config import Settings, resolve_settings
from pga.core.abstract import ConnectionPool
from pga.core.completion import Completion
from pga.core.parallel import perform_parallel
from pga.core.query import perform_query
from pga.core.transaction import perform_transaction
from pga.domain.models import QueryResult, Statement, coerce_statements
from pga.domain.sql import sql as build_sql
from pga.errors import InvalidStatementError
from pga.infrastructure.base import ErrorListener
from pga.infrastructure.db_factory import create_pool
from pga.utils.logging import get_logger

log = get_logger(__name__)

Callback = Callable[[Optional[BaseException], Any], Any]


class PostgreSQLAdapter:
    """
    Convenience methods over a pooled PostgreSQL connection.

    Parameters
    ----------
    config : Settings | Mapping | None
        Connection and pool settings. A mapping is validated into `Settings`
        (field names or environment aliases); None uses the environment.
    pool : ConnectionPool, optional
        Pre-built pool to wrap instead of creating one from `config`.
    on_error : Callable[[BaseException], None], optional
        Listener for errors raised by idle pooled connections. The default
        logs and ignores them.
    **driver_kwargs
        Forwarded to the driver's pool constructor.
    """

    def __init__(
        self,
        config: Union[Settings, Mapping[str, Any], None] = None,
        *,
        pool: Optional[ConnectionPool] = None,
        on_error: Optional[ErrorListener] = None,
        **driver_kwargs: Any,
    ) -> None:
        self.settings = resolve_settings(config)
        self.pool: ConnectionPool = (
            pool
            if pool is not None
            else create_pool(self.settings, on_error=on_error, **driver_kwargs)
        )

    async def __aenter__(self) -> "PostgreSQLAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        closing = self.close()
        if inspect.isawaitable(closing):
            await closing
        return False

    def close(self, *args: Any, **kwargs: Any) -> Any:
        """Shut down the pool, forwarding arguments and result unchanged."""
        return self.pool.shutdown(*args, **kwargs)

    def query(
        self,
        text: Any,
        params: Union[Sequence[Any], Callback, None] = None,
        callback: Optional[Callback] = None,
    ) -> Optional["asyncio.Future[QueryResult]"]:
        """
        Run a single statement on any pooled connection.

        `text` may be SQL text or anything `Statement.coerce` accepts, such as
        the result of `sql`. ``query(text, callback)`` is also accepted.
        """
        if callback is None and callable(params):
            callback, params = params, None

        def prepare() -> Statement:
            if params is None:
                return Statement.coerce(text)
            if isinstance(text, str):
                return Statement.build(text, params)
            return Statement.build(Statement.coerce(text).text, params)

        return self._dispatch("query", perform_query, prepare, callback)

    def parallel(
        self, statements: Sequence[Any], callback: Optional[Callback] = None
    ) -> Optional["asyncio.Future[List[QueryResult]]"]:
        """
        Run independent statements concurrently, possibly on different
        connections, and return their results in input order.

        In callback style a failure invokes the callback immediately with the
        error and the results collected so far. In future style the future
        fails with the first error and no results. Never use this for
        statements that modify the database.
        """
        return self._dispatch(
            "parallel", perform_parallel, lambda: coerce_statements(statements), callback
        )

    def transact(
        self, statements: Sequence[Any], callback: Optional[Callback] = None
    ) -> Optional["asyncio.Future[List[QueryResult]]"]:
        """
        Run statements in order inside BEGIN/COMMIT on one dedicated
        connection, rolling back on the first failure.

        On failure only the error is reported. If ROLLBACK itself fails, its
        error is reported instead of the one that triggered it.
        """
        return self._dispatch(
            "transact", perform_transaction, lambda: coerce_statements(statements), callback
        )

    @staticmethod
    def sql(template: str, *args: Any, **kwargs: Any) -> Statement:
        """Build a parameterized Statement; see `pga.domain.sql.sql`."""
        return build_sql(template, *args, **kwargs)

    def _dispatch(
        self,
        label: str,
        operation: Callable[[ConnectionPool, Any, Completion], Any],
        prepare: Callable[[], Any],
        callback: Optional[Callback],
    ) -> Optional[asyncio.Future]:
        loop = asyncio.get_running_loop()
        future: Optional[asyncio.Future] = None
        if callable(callback):
            completion = Completion.for_callback(callback, label, loop)
        else:
            future = loop.create_future()
            completion = Completion.for_future(future, label)

        try:
            payload = prepare()
        except InvalidStatementError as exc:
            log.warning(f"[{label.upper()} REJECTED]", extra={"error": str(exc)})
            completion.settle(exc, None)
            return future

        operation(self.pool, payload, completion)
        return future


__all__ = ["PostgreSQLAdapter"]
