from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from affluent.base import Step, Stream, T, U
from affluent.errors import ErrorPolicy
from affluent.processors import SKIPPED, StatelessStreamProcessor


class _MapProcessor(StatelessStreamProcessor[T, U]):
    """Map processor."""

    def __init__(
        self,
        input_stream: Stream[T],
        func: Callable[[T], Awaitable[U] | U],
        error_policy: Optional[ErrorPolicy[T, U]] = None,
        step_name: Optional[str] = None,
    ):
        super().__init__(input_stream, error_policy, step_name)
        self.func = func

    async def _process_item(self, item: T) -> AsyncIterator[U]:
        result = await self._safe_call(item, self.func, item)

        if result is not SKIPPED:
            yield result


class Map(Step[T, U]):
    """Map operation to transform each item of a stream.

    Example:
        >>> await ([1, 2, 3] | Map(lambda x: x * 2)).result()
        [2, 4, 6]
    """

    def __init__(
        self,
        func: Callable[[T], Awaitable[U] | U],
        error_policy: Optional[ErrorPolicy[T, U]] = None,
    ):
        if not callable(func):
            raise TypeError(f"func must be callable, got {type(func).__name__}")

        self.func = func
        self.error_policy = error_policy

    def _build_processor(self, input_stream: Stream[T]) -> _MapProcessor[T, U]:
        return _MapProcessor(input_stream, self.func, self.error_policy, self.name)


def map(
    func: Callable[[T], Awaitable[U] | U],
    error_policy: Optional[ErrorPolicy[T, Any]] = None,
) -> Map[T, U]:
    """Map operation to transform each item of a stream.

    Args:
        func: Sync or async transformation
        error_policy: Optional policy deciding what happens when ``func`` raises
    """
    return Map(func, error_policy)
