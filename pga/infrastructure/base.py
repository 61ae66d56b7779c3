"""
Shared lifecycle for pool backends.

Driver pools are opened lazily on first use (opening is asynchronous and the
adapter is constructed synchronously), retried with tenacity on transient
connection errors, and refuse further work after shutdown.
"""

from __future__ import annotations

import abc
import asyncio
from typing import Any, Callable, Generic, Optional, Sequence, Tuple, Type, TypeVar

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from pga.core.abstract import ConnectionLease
from pga.domain.models import QueryResult
from pga.errors import PoolClosedError
from pga.utils.logging import get_logger

log = get_logger(__name__)

P = TypeVar("P")

ErrorListener = Callable[[BaseException], None]


def log_pool_error(error: BaseException) -> None:
    """Default pool error listener: record the error and carry on."""
    log.warning("[POOL ERROR]", extra={"error": repr(error)})


class BasePool(abc.ABC, Generic[P]):
    """
    Lazily-opened driver pool implementing the ConnectionPool protocol.

    Subclasses provide `_open`, `_close`, `acquire` and `execute` for their
    driver; `_get_pool` hands out the opened driver pool.

    Parameters
    ----------
    dsn : str
        Connection string.
    min_size, max_size : int
        Pool bounds forwarded to the driver.
    connect_retries : int
        Attempts made to open the pool before giving up.
    on_error : Callable[[BaseException], None], optional
        Listener for errors raised by idle pooled connections.
    """

    driver: str = "abstract"
    transient_errors: Tuple[Type[BaseException], ...] = (OSError,)

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
        connect_retries: int = 3,
        on_error: Optional[ErrorListener] = None,
        **driver_kwargs: Any,
    ) -> None:
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.connect_retries = connect_retries
        self.on_error: ErrorListener = on_error or log_pool_error
        self.driver_kwargs = driver_kwargs
        self._opening: Optional[asyncio.Future] = None
        self._pool: Optional[P] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abc.abstractmethod
    async def _open(self) -> P:  # pragma: no cover - interface only
        """Create and open the driver pool."""
        raise NotImplementedError

    @abc.abstractmethod
    async def _close(self, pool: P, *args: Any, **kwargs: Any) -> Any:  # pragma: no cover
        """Close the driver pool."""
        raise NotImplementedError

    @abc.abstractmethod
    async def acquire(self) -> ConnectionLease:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def execute(self, text: str, params: Sequence[Any] = ()) -> QueryResult:  # pragma: no cover
        raise NotImplementedError

    async def _open_with_retry(self) -> P:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.connect_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(self.transient_errors),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    log.info(
                        f"[POOL OPEN RETRY] {self.driver}",
                        extra={"attempt": attempt.retry_state.attempt_number},
                    )
                pool = await self._open()
        log.info(
            f"[POOL OPEN] {self.driver}",
            extra={"min_size": self.min_size, "max_size": self.max_size},
        )
        return pool

    async def _get_pool(self) -> P:
        if self._closed:
            raise PoolClosedError(f"{self.driver} pool has been shut down")
        if self._pool is not None:
            return self._pool

        if self._opening is None:
            self._opening = asyncio.ensure_future(self._open_with_retry())
        opening = self._opening
        try:
            pool = await asyncio.shield(opening)
        except Exception:
            # Let the next caller try again.
            if self._opening is opening and opening.done():
                self._opening = None
            raise
        self._pool = pool
        return pool

    async def shutdown(self, *args: Any, **kwargs: Any) -> Any:
        """
        Close every pooled connection. Arguments are forwarded to the
        driver's close call and its return value is passed back.
        """
        self._closed = True
        opening, self._opening = self._opening, None
        pool, self._pool = self._pool, None
        if pool is None and opening is not None:
            try:
                pool = await opening
            except Exception:
                log.debug(f"[POOL SHUTDOWN] {self.driver} pool never opened", exc_info=True)
                return None
        if pool is None:
            return None
        log.info(f"[POOL SHUTDOWN] {self.driver}")
        return await self._close(pool, *args, **kwargs)


__all__ = ["BasePool", "ErrorListener", "log_pool_error"]
