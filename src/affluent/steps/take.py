from typing import AsyncIterator

from ..base import Step, Stream, T
from ..errors import StructuralError
from ..processors import StatelessStreamProcessor


class _TakeProcessor(StatelessStreamProcessor[T, T]):
    """Take processor that stops upstream once it has enough items."""

    def __init__(self, input_stream: Stream[T], n: int, step_name: str):
        super().__init__(input_stream, step_name=step_name)
        self.n = n
        self.taken = 0
        # Nothing to take: never pull at all
        self.finished = n <= 0

    async def _process_item(self, item: T) -> AsyncIterator[T]:
        self.taken += 1
        if self.taken >= self.n:
            # Stop before the next pull so item n + 1 is never requested
            self.finished = True
        yield item

    async def _cleanup(self):
        if self.finished and not self.input_stream.consumed:
            await self._stop_upstream()


class Take(Step[T, T]):
    """Take step.

    Emits the first ``n`` items as they arrive and then stops pulling from
    upstream. ``n <= 0`` produces an empty stream without pulling anything.
    """

    def __init__(self, n: int):
        if isinstance(n, bool) or not isinstance(n, int):
            raise StructuralError(f"n must be an integer, got {type(n).__name__}")

        self.n = n

    def _build_processor(self, input_stream: Stream[T]) -> _TakeProcessor[T]:
        return _TakeProcessor(input_stream, self.n, self.name)


def take(n: int) -> Take[T]:
    """Take step."""
    return Take(n)
