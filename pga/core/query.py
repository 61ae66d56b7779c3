"""
Direct one-shot query against the pool.
"""

from __future__ import annotations

import asyncio

from pga.core.abstract import ConnectionPool
from pga.core.completion import Completion, spawn
from pga.domain.models import Statement


def perform_query(
    pool: ConnectionPool, statement: Statement, completion: Completion
) -> asyncio.Task:
    """Run `statement` on any pooled connection and report through `completion`."""
    return spawn(pool.execute(statement.text, statement.params), completion)


__all__ = ["perform_query"]
