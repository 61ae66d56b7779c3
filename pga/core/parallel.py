"""
Parallel executor: fan independent statements out over the pool.

Every statement runs as its own one-shot pool query, so the pool may serve
each from a different connection. Results are written at their original
index regardless of completion order.

Only use this for statements without side effects: there is no atomicity or
ordering guarantee between them.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from pga.core.abstract import ConnectionPool
from pga.core.completion import Completion, track
from pga.domain.models import QueryResult, Statement
from pga.utils.logging import get_logger

log = get_logger(__name__)


def perform_parallel(
    pool: ConnectionPool, statements: Sequence[Statement], completion: Completion
) -> List[asyncio.Task]:
    """
    Start every statement concurrently and settle `completion` once.

    On success the completion receives the fully ordered result list. On the
    first failure it receives the error together with the list as populated
    so far; in-flight statements keep running and later failures are ignored.

    Returns
    -------
    List[asyncio.Task]
        One task per statement, in input order.
    """
    statements = list(statements)
    total = len(statements)
    results: List[Optional[QueryResult]] = [None] * total
    completed = 0

    if total == 0:
        completion.settle(None, results)
        return []

    loop = asyncio.get_running_loop()
    log.debug("[PARALLEL START]", extra={"statements": total})

    def _collect(index: int, finished: asyncio.Task) -> None:
        nonlocal completed
        if finished.cancelled():
            completion.settle(asyncio.CancelledError(), results)
            return
        error = finished.exception()
        if error is not None:
            log.warning(
                "[PARALLEL STATEMENT FAILED]",
                extra={"index": index, "error": repr(error)},
            )
            completion.settle(error, results)
            return

        results[index] = finished.result()
        completed += 1
        if completed == total:
            log.debug("[PARALLEL COMPLETE]", extra={"statements": total})
            completion.settle(None, results)

    tasks: List[asyncio.Task] = []
    for index, statement in enumerate(statements):
        task = track(loop.create_task(pool.execute(statement.text, statement.params)))
        task.add_done_callback(lambda finished, index=index: _collect(index, finished))
        tasks.append(task)
    return tasks


__all__ = ["perform_parallel"]
