"""
Completion channel shared by the query, parallel and transaction operations.

Every operation reports its outcome through a `Completion`, which settles at
most once (first settle wins). The adapter facade decides per call whether the
channel drives an error-first callback or an `asyncio.Future`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Optional, Set

from pga.utils.logging import get_logger

log = get_logger(__name__)

SettleFn = Callable[[Optional[BaseException], Any], None]

# Strong references to in-flight tasks; the event loop only keeps weak ones.
_background_tasks: Set[asyncio.Task] = set()


class Completion:
    """
    First-settle-wins outcome channel.

    Parameters
    ----------
    on_settle : Callable[[BaseException | None, Any], None]
        Receives ``(error, result)`` exactly once.
    label : str
        Operation name, used in log records.
    """

    def __init__(self, on_settle: SettleFn, label: str = "operation") -> None:
        self._on_settle = on_settle
        self.label = label
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def settle(self, error: Optional[BaseException], result: Any = None) -> bool:
        """
        Deliver the outcome. Returns False if the channel was already settled.
        """
        if self._settled:
            log.debug(
                f"[{self.label.upper()}] outcome ignored, already settled",
                extra={"operation": self.label, "error": repr(error) if error else None},
            )
            return False
        self._settled = True
        self._on_settle(error, result)
        return True

    @classmethod
    def for_callback(
        cls,
        callback: Callable[[Optional[BaseException], Any], Any],
        label: str = "operation",
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> "Completion":
        """Channel that schedules ``callback(error, result)`` on the event loop."""
        loop = loop or asyncio.get_running_loop()

        def _deliver(error: Optional[BaseException], result: Any) -> None:
            loop.call_soon(callback, error, result)

        return cls(_deliver, label)

    @classmethod
    def for_future(cls, future: asyncio.Future, label: str = "operation") -> "Completion":
        """Channel that resolves or rejects `future`; partial results are dropped."""

        def _deliver(error: Optional[BaseException], result: Any) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        return cls(_deliver, label)


def track(task: asyncio.Task) -> asyncio.Task:
    """Keep a strong reference to `task` until it finishes."""
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def spawn(coro: Coroutine[Any, Any, Any], completion: Completion) -> asyncio.Task:
    """
    Run `coro` as a task and settle `completion` with its outcome.
    """
    task = track(asyncio.get_running_loop().create_task(coro))

    def _on_done(finished: asyncio.Task) -> None:
        if finished.cancelled():
            completion.settle(asyncio.CancelledError(), None)
            return
        error = finished.exception()
        if error is not None:
            completion.settle(error, None)
        else:
            completion.settle(None, finished.result())

    task.add_done_callback(_on_done)
    return task


__all__ = ["Completion", "spawn", "track"]
