"""
Pool factory for the pga adapter.

Selects the pool backend from settings (``DB_DRIVER``) and builds it from the
composed DSN and pool bounds. Drivers are imported on demand so that only the
selected one needs to be installed.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pga.config import Settings, build_dsn, get_settings
from pga.infrastructure.base import BasePool, ErrorListener
from pga.utils.logging import get_logger

log = get_logger(__name__)


def _asyncpg_backend() -> type:
    from pga.infrastructure.asyncpg_backend import AsyncpgPool

    return AsyncpgPool


def _psycopg_backend() -> type:
    from pga.infrastructure.psycopg_backend import PsycopgPool

    return PsycopgPool


def _backend_factories() -> Dict[str, Callable[[], type]]:
    """Registry of available pool backends."""
    return {
        "asyncpg": _asyncpg_backend,
        "psycopg": _psycopg_backend,
    }


def available_drivers() -> list[str]:
    """List available pool backend names."""
    return sorted(_backend_factories().keys())


def create_pool(
    settings: Optional[Settings] = None,
    on_error: Optional[ErrorListener] = None,
    **driver_kwargs: Any,
) -> BasePool:
    """
    Build (but do not open) the pool backend described by `settings`.

    Parameters
    ----------
    settings : Settings, optional
        Connection and pool settings. Defaults to the cached environment
        settings.
    on_error : Callable[[BaseException], None], optional
        Listener for errors raised by idle pooled connections. Defaults to
        logging them.
    **driver_kwargs
        Forwarded to the driver's pool constructor.

    Returns
    -------
    BasePool
        A pool implementing the ConnectionPool protocol; it opens on first use.
    """
    settings = settings or get_settings()
    factories = _backend_factories()
    if settings.db_driver not in factories:
        raise ValueError(
            f"Unknown driver '{settings.db_driver}'. Available: {', '.join(factories)}"
        )
    backend = factories[settings.db_driver]()
    log.debug(
        "[POOL CREATE]",
        extra={
            "driver": settings.db_driver,
            "host": settings.db_host,
            "database": settings.db_name,
            "max_size": settings.db_pool_max_size,
        },
    )
    return backend(
        build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        connect_retries=settings.db_connect_retries,
        on_error=on_error,
        **driver_kwargs,
    )


__all__ = ["available_drivers", "create_pool"]
