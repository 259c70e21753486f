"""Concurrency helpers used by Affluent sinks."""

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class _End:
    def __repr__(self):
        return "END"


_END = _End()


class OrderedWriter(Generic[T]):
    """Feed one destination from its own task, one item at a time.

    Items are handed over with ``put`` without waiting; the writer task
    applies ``write`` to them in the order they were put. The first failing
    write ends the task with that error, and later items are dropped.

    Usage:
        async with asyncio.TaskGroup() as tg:
            writer = OrderedWriter(send)
            tg.create_task(writer.run())
            writer.put(item)
            writer.close()
    """

    def __init__(self, write: Callable[[T], Awaitable[Any]]):
        """Create a writer.

        Args:
            write: Coroutine function performing one write
        """
        self.write = write
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def put(self, item: T):
        """Schedule ``item`` to be written after the items already put."""
        self._queue.put_nowait(item)

    def close(self):
        """Let the writer task finish once the queued items are written."""
        self._queue.put_nowait(_END)

    async def run(self):
        """Write queued items until ``close`` is reached."""
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            await self.write(item)


def first_error(error: BaseException) -> BaseException:
    """Unwrap the first leaf exception of a (possibly nested) exception group."""
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error
