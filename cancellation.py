import asyncio
from typing import Awaitable, Optional, TypeVar

from errors import OperationCancelled

T = TypeVar("T")


# =========================
# Caller Cancellation
# =========================
#
# A cancellation signal is an optional asyncio.Event owned by the caller.
# Setting it aborts whatever the pipeline is awaiting and surfaces as
# OperationCancelled. Task.cancel() is left alone and propagates as
# asyncio.CancelledError.

async def run_until_cancelled(
    awaitable: Awaitable[T],
    cancel: Optional[asyncio.Event] = None,
) -> T:
    """
    Await `awaitable` unless `cancel` is set first.

    If both finish together the completed result wins.
    Raises OperationCancelled when the signal fired first.
    """
    if cancel is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())

    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for pending in (task, waiter):
            if not pending.done():
                pending.cancel()
        await asyncio.gather(task, waiter, return_exceptions=True)

    if not task.cancelled():
        return task.result()

    raise OperationCancelled()


async def sleep(delay: float, cancel: Optional[asyncio.Event] = None) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled()

    await run_until_cancelled(asyncio.sleep(max(delay, 0)), cancel)
