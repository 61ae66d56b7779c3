"""
Sequential driver: an asynchronous, one-item-at-a-time reduce.

Each step is scheduled on the event loop with ``call_soon`` instead of being
invoked from the previous step's stack, so long statement lists do not grow
the stack and other tasks can interleave between steps.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

Worker = Callable[[List[Any], T, Callable[[], None]], None]


def sequence(
    items: Sequence[T],
    each: Worker,
    done: Callable[[List[Any]], None],
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> None:
    """
    Call ``each(accumulator, item, advance)`` for every item in order, then
    ``done(accumulator)``.

    The worker must call ``advance()`` to move on to the next item; a worker
    that never does halts the sequence, and `done` is never called. This is
    how callers stop on failure. The driver itself does no error handling.

    Parameters
    ----------
    items : Sequence
        Items to visit, in order.
    each : Callable
        Worker receiving the shared accumulator list, the current item and the
        advance function.
    done : Callable
        Called once with the accumulator after the last item.
    loop : AbstractEventLoop, optional
        Loop to schedule steps on. Defaults to the running loop.
    """
    loop = loop or asyncio.get_running_loop()
    accumulator: List[Any] = []
    items = list(items)
    length = len(items)

    def _step(index: int) -> None:
        if index >= length:
            done(accumulator)
            return

        advanced = False

        def advance() -> None:
            nonlocal advanced
            if advanced:
                return
            advanced = True
            loop.call_soon(_step, index + 1)

        each(accumulator, items[index], advance)

    loop.call_soon(_step, 0)


__all__ = ["sequence"]
