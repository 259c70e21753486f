import inspect
from typing import Any, AsyncIterator, Awaitable, Callable

from ..base import Step, Stream, T
from ..processors import StatelessStreamProcessor


class _ValidateProcessor(StatelessStreamProcessor[T, T]):
    """Processor passing valid items and reporting invalid ones."""

    def __init__(
        self,
        input_stream: Stream[T],
        predicate: Callable[[T], Awaitable[bool] | bool],
        on_invalid: Callable[[T], Any],
        step_name: str,
    ):
        super().__init__(input_stream, step_name=step_name)
        self.predicate = predicate
        self.on_invalid = on_invalid

    async def _process_item(self, item: T) -> AsyncIterator[T]:
        valid = self.predicate(item)
        if inspect.isawaitable(valid):
            valid = await valid

        if valid:
            yield item
            return

        result = self.on_invalid(item)
        if inspect.isawaitable(result):
            await result


class Validate(Step[T, T]):
    """Keep items passing ``predicate``; hand the others to ``on_invalid``.

    Invalid items are dropped after ``on_invalid`` has run.

    Example:
        >>> rejected = []
        >>> await ([1, -2, 3] | validate(lambda x: x > 0, rejected.append)).result()
        [1, 3]
        >>> rejected
        [-2]
    """

    def __init__(
        self,
        predicate: Callable[[T], Awaitable[bool] | bool],
        on_invalid: Callable[[T], Awaitable[Any] | Any],
    ):
        if not callable(predicate) or not callable(on_invalid):
            raise TypeError("predicate and on_invalid must be callable")

        self.predicate = predicate
        self.on_invalid = on_invalid

    def _build_processor(self, input_stream: Stream[T]) -> _ValidateProcessor[T]:
        return _ValidateProcessor(
            input_stream, self.predicate, self.on_invalid, self.name
        )


def validate(
    predicate: Callable[[T], Awaitable[bool] | bool],
    on_invalid: Callable[[T], Awaitable[Any] | Any],
) -> Validate[T]:
    """Create a validation step."""
    return Validate(predicate, on_invalid)
