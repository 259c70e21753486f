from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from ..base import Step, Stream, T
from ..errors import ErrorPolicy
from ..processors import StatelessStreamProcessor


class _TapProcessor(StatelessStreamProcessor[T, T]):
    """Processor running a side effect and passing every item through."""

    def __init__(
        self,
        input_stream: Stream[T],
        func: Callable[[T], Any],
        error_policy: Optional[ErrorPolicy[T, Any]] = None,
        step_name: Optional[str] = None,
    ):
        super().__init__(input_stream, error_policy, step_name)
        self.func = func

    async def _process_item(self, item: T) -> AsyncIterator[T]:
        # Skip and substitute outcomes only silence the failure
        await self._safe_call(item, self.func, item)
        yield item


class Tap(Step[T, T]):
    """Run ``func`` on each item for its side effect, leaving the item unchanged.

    Example:
        >>> seen = []
        >>> await ([1, 2] | Tap(seen.append) | Map(str)).result()
        ['1', '2']
        >>> seen
        [1, 2]
    """

    def __init__(
        self,
        func: Callable[[T], Awaitable[Any] | Any],
        error_policy: Optional[ErrorPolicy[T, Any]] = None,
    ):
        if not callable(func):
            raise TypeError(f"func must be callable, got {type(func).__name__}")

        self.func = func
        self.error_policy = error_policy

    def _build_processor(self, input_stream: Stream[T]) -> _TapProcessor[T]:
        return _TapProcessor(input_stream, self.func, self.error_policy, self.name)


def tap(
    func: Callable[[T], Awaitable[Any] | Any],
    error_policy: Optional[ErrorPolicy[T, Any]] = None,
) -> Tap[T]:
    """Create a tap step running a side effect per item."""
    return Tap(func, error_policy)
