"""
Core coordination package for the pga adapter.

Holds the driver-independent pieces: pool contracts, the completion channel,
the sequential driver, the transaction coordinator and the parallel executor.
Nothing here imports a database driver.
"""

from pga.core.abstract import ConnectionLease, ConnectionPool, PooledConnection
from pga.core.completion import Completion, spawn
from pga.core.parallel import perform_parallel
from pga.core.query import perform_query
from pga.core.sequence import sequence
from pga.core.transaction import (
    TransactionCoordinator,
    TransactionState,
    perform_transaction,
)

__all__ = [
    # Contracts
    "ConnectionLease",
    "ConnectionPool",
    "PooledConnection",
    # Completion
    "Completion",
    "spawn",
    # Operations
    "perform_parallel",
    "perform_query",
    "perform_transaction",
    "sequence",
    "TransactionCoordinator",
    "TransactionState",
]
