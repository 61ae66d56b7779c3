"""
Transaction coordinator.

Acquires one dedicated connection, wraps an ordered statement list in
BEGIN/COMMIT, executes the statements one at a time through the sequential
driver and rolls back on the first failure. The lease is released exactly
once on every exit path.

States:

    ACQUIRING -> BEGINNING -> EXECUTING -> COMMITTING -> DONE
                      \\            |            /
                       +----> ROLLING_BACK ----+--> DONE

A failed ROLLBACK is reported instead of the error that triggered it (the
original error is kept as ``__cause__``).
"""

from __future__ import annotations

import asyncio
import enum
from typing import List, Optional, Sequence

from pga.core.abstract import ConnectionLease, ConnectionPool
from pga.core.completion import Completion, spawn
from pga.core.sequence import sequence
from pga.domain.models import QueryResult, Statement
from pga.utils.logging import get_logger

log = get_logger(__name__)


class TransactionState(str, enum.Enum):
    ACQUIRING = "acquiring"
    BEGINNING = "beginning"
    EXECUTING = "executing"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"
    DONE = "done"


class TransactionCoordinator:
    """
    Runs one transaction over a list of statements.

    A coordinator instance is single-use: `run` may be awaited once.

    Parameters
    ----------
    pool : ConnectionPool
        Pool to lease the dedicated connection from.
    statements : Sequence[Statement]
        Statements to execute, strictly in order.
    """

    def __init__(self, pool: ConnectionPool, statements: Sequence[Statement]) -> None:
        self._pool = pool
        self._statements = list(statements)
        self.state: Optional[TransactionState] = None
        self.history: List[TransactionState] = []
        self._running: Optional[asyncio.Task] = None

    def _transition(self, state: TransactionState) -> None:
        self.state = state
        self.history.append(state)
        log.debug(
            f"[TRANSACTION {state.name}]",
            extra={"state": state.value, "statements": len(self._statements)},
        )

    async def run(self) -> List[QueryResult]:
        """
        Execute the transaction and return one result per statement.

        Raises
        ------
        Exception
            The acquisition, BEGIN, statement or COMMIT error, or the ROLLBACK
            error if rolling back failed as well.
        """
        if self.history:
            raise RuntimeError("TransactionCoordinator.run() may only be called once")

        self._transition(TransactionState.ACQUIRING)
        try:
            lease = await self._pool.acquire()
        except Exception:
            self._transition(TransactionState.DONE)
            log.warning("[TRANSACTION ACQUIRE FAILED]", exc_info=True)
            raise

        try:
            self._transition(TransactionState.BEGINNING)
            await lease.connection.execute("BEGIN")

            self._transition(TransactionState.EXECUTING)
            results = await self._execute_all(lease)

            self._transition(TransactionState.COMMITTING)
            await lease.connection.execute("COMMIT")
        except asyncio.CancelledError as cancelled:
            # Connection is mid-transaction; hand it back for disposal.
            await self._abandon_running()
            await lease.release(cancelled)
            self._transition(TransactionState.DONE)
            raise
        except Exception as error:
            await self._rollback(lease, error)
            raise

        await lease.release()
        self._transition(TransactionState.DONE)
        log.debug("[TRANSACTION COMMITTED]", extra={"statements": len(results)})
        return results

    def _execute_all(self, lease: ConnectionLease) -> "asyncio.Future[List[QueryResult]]":
        """
        Drive the statements through the sequential driver on the leased
        connection. The returned future fails with the first statement error;
        later statements are never started.
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future = loop.create_future()
        connection = lease.connection

        def each(results: List[QueryResult], statement: Statement, advance) -> None:
            task = loop.create_task(connection.execute(statement.text, statement.params))
            self._running = task

            def _on_done(finished: asyncio.Task) -> None:
                if finished.cancelled():
                    if not outcome.done():
                        outcome.cancel()
                    return
                error = finished.exception()
                if outcome.done():
                    return
                if error is not None:
                    log.warning(
                        "[TRANSACTION STATEMENT FAILED]",
                        extra={"index": len(results), "error": repr(error)},
                    )
                    outcome.set_exception(error)
                    return
                results.append(finished.result())
                advance()

            task.add_done_callback(_on_done)

        def done(results: List[QueryResult]) -> None:
            if not outcome.done():
                outcome.set_result(results)

        sequence(self._statements, each, done, loop=loop)
        return outcome

    async def _abandon_running(self) -> None:
        """Cancel the in-flight statement and wait until it has stopped."""
        task, self._running = self._running, None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait([task])

    async def _rollback(self, lease: ConnectionLease, error: BaseException) -> None:
        """
        Roll back and release the lease; raises the rollback error if ROLLBACK
        fails or is cancelled, otherwise returns so the caller re-raises `error`.
        """
        self._transition(TransactionState.ROLLING_BACK)
        log.warning("[TRANSACTION ROLLBACK]", extra={"error": repr(error)})
        try:
            await lease.connection.execute("ROLLBACK")
        except BaseException as rollback_error:
            await lease.release(rollback_error)
            self._transition(TransactionState.DONE)
            if isinstance(rollback_error, asyncio.CancelledError):
                log.warning("[TRANSACTION ROLLBACK CANCELLED]", extra={"error": repr(error)})
                raise
            log.error(
                "[TRANSACTION ROLLBACK FAILED]",
                extra={"error": repr(rollback_error), "original_error": repr(error)},
            )
            raise rollback_error from error
        await lease.release()
        self._transition(TransactionState.DONE)


def perform_transaction(
    pool: ConnectionPool, statements: Sequence[Statement], completion: Completion
) -> TransactionCoordinator:
    """Start a transaction in the background and report through `completion`."""
    coordinator = TransactionCoordinator(pool, statements)
    spawn(coordinator.run(), completion)
    return coordinator


__all__ = ["TransactionState", "TransactionCoordinator", "perform_transaction"]
