"""
Infrastructure package for the pga adapter.

Centralizes database connectivity concerns: the asyncpg and psycopg pool
backends and the factory that picks one from settings. Keep this layer
focused on I/O and resource management, decoupled from the coordination
logic in `pga.core`.
"""

from pga.infrastructure.base import BasePool, log_pool_error
from pga.infrastructure.db_factory import available_drivers, create_pool

__all__ = [
    "BasePool",
    "available_drivers",
    "create_pool",
    "log_pool_error",
]
