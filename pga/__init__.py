"""
pga - PostgreSQL adapter helpers.

A thin layer over an asyncpg (or psycopg) connection pool offering:

- single queries on any pooled connection
- parallel (fan-out) queries with results kept in input order
- multi-statement transactions with automatic COMMIT / ROLLBACK
- a template helper that builds parameterized statements

Each operation can be awaited or driven by an error-first callback.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pga.adapter import PostgreSQLAdapter
from pga.config import Settings, build_dsn, get_settings
from pga.core import (
    ConnectionLease,
    ConnectionPool,
    PooledConnection,
    TransactionCoordinator,
    TransactionState,
    sequence,
)
from pga.domain import QueryResult, Statement, sql
from pga.errors import (
    InvalidStatementError,
    LeaseReleasedError,
    PgaError,
    PoolClosedError,
    SqlTemplateError,
)
from pga.infrastructure import create_pool
from pga.utils.logging import configure_logging, get_logger


def create_adapter(
    config: Union[Settings, Mapping[str, Any], None] = None, **kwargs: Any
) -> PostgreSQLAdapter:
    """Return a new PostgreSQLAdapter for `config`."""
    return PostgreSQLAdapter(config, **kwargs)


__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Facade
    "PostgreSQLAdapter",
    "create_adapter",
    # Configuration
    "Settings",
    "build_dsn",
    "get_settings",
    # Pools and coordination
    "ConnectionLease",
    "ConnectionPool",
    "PooledConnection",
    "TransactionCoordinator",
    "TransactionState",
    "create_pool",
    "sequence",
    # Statements
    "QueryResult",
    "Statement",
    "sql",
    # Errors
    "PgaError",
    "InvalidStatementError",
    "LeaseReleasedError",
    "PoolClosedError",
    "SqlTemplateError",
    # Logging
    "configure_logging",
    "get_logger",
]
