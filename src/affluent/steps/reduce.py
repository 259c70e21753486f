from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

from ..base import Step, Stream, T
from ..errors import ErrorPolicy, StructuralError
from ..processors import SKIPPED, StatelessStreamProcessor

U = TypeVar("U")


class _NotProvided:
    """Marks a reduce without initial value; ``None`` is a valid initial value."""

    def __repr__(self):
        return "NOT_PROVIDED"


NOT_PROVIDED = _NotProvided()


class _ReduceProcessor(StatelessStreamProcessor[T, U]):
    """Processor folding the items, left to right, into one accumulator.

    Items are folded as they arrive and never buffered. The accumulator is
    emitted once the input is exhausted.
    """

    def __init__(
        self,
        input_stream: Stream[T],
        reducer: Callable[[U, T], Awaitable[U] | U],
        initial: U | _NotProvided,
        error_policy: Optional[ErrorPolicy[T, U]] = None,
        step_name: Optional[str] = None,
    ):
        """Initialize the reduce processor.

        Args:
            input_stream: Stream to read items from
            reducer: Binary function that takes (accumulator, item) and returns new accumulator
            initial: Initial value for the accumulator, or NOT_PROVIDED
            error_policy: Policy for reducer failures
            step_name: Name of the owning step
        """
        super().__init__(input_stream, error_policy, step_name)
        self.reducer = reducer
        self.accumulator = initial

    async def _process_item(self, item: T) -> AsyncIterator[U]:
        """Fold one item into the accumulator.

        A skip outcome keeps the previous accumulator; a substitute outcome
        replaces it.

        Args:
            item: The next item of the sequence
        """
        if self.accumulator is NOT_PROVIDED:
            self.accumulator = item
            return

        result = await self._safe_call(item, self.reducer, self.accumulator, item)
        if result is not SKIPPED:
            self.accumulator = result

        return
        yield

    async def _flush(self) -> AsyncIterator[U]:
        """Emit the final accumulator.

        Raises:
            StructuralError: If sequence is empty and no initial value provided
        """
        if self.accumulator is NOT_PROVIDED:
            raise StructuralError("Cannot reduce empty sequence without initial value")

        yield self.accumulator


class Reduce(Step[T, U]):
    """Pipeline step that reduces all items to a single accumulated value.

    The Reduce step applies a binary function cumulatively to items in the
    sequence, from left to right, to reduce the sequence to a single value.
    This is equivalent to Python's built-in functools.reduce().

    No associativity or commutativity is assumed: the order of the items is
    the order of the fold.

    Example:
        >>> # Sum all numbers
        >>> total = await (range(5) | reduce(lambda acc, x: acc + x, 0)).result()
        >>> # [10]  (Note: reduce emits a single item)

        >>> # Find maximum
        >>> maximum = await ([3, 1, 4, 1, 5] | reduce(max)).result()
        >>> # [5]
    """

    def __init__(
        self,
        reducer: Callable[[U, T], Awaitable[U] | U],
        initial: U | _NotProvided = NOT_PROVIDED,
        error_policy: Optional[ErrorPolicy[T, U]] = None,
    ):
        """Initialize the Reduce step.

        Args:
            reducer: Binary function that takes (accumulator, item) and returns new accumulator
            initial: Initial value for the accumulator. If not provided, the first item is used.
            error_policy: Optional policy for reducer failures
        """
        if not callable(reducer):
            raise TypeError(f"reducer must be callable, got {type(reducer).__name__}")

        self.reducer = reducer
        self.initial = initial
        self.error_policy = error_policy

    def _build_processor(self, input_stream: Stream[T]) -> _ReduceProcessor[T, U]:
        """Build the processor for this reduce step.

        The processor owns its accumulator, so the step can run many times.
        """
        return _ReduceProcessor(
            input_stream, self.reducer, self.initial, self.error_policy, self.name
        )


def reduce(
    reducer: Callable[[U, T], Awaitable[U] | U],
    initial: U | _NotProvided = NOT_PROVIDED,
    error_policy: Optional[ErrorPolicy[T, U]] = None,
) -> Reduce[T, U]:
    """Create a reduce step that accumulates items into a single value.

    Args:
        reducer: Binary function that takes (accumulator, item) and returns
                a new accumulator value. Can be async.
        initial: Initial value for the accumulator. If not provided, the
                first item in the sequence is used as the initial value.
        error_policy: Optional policy for reducer failures

    Returns:
        A Reduce step that can be used in pipelines

    Raises:
        StructuralError: If the sequence is empty and no initial value is provided

    Examples:
        >>> # Sum with initial value
        >>> total = await (range(1, 6) | reduce(lambda acc, x: acc + x, 100)).result()
        >>> # [115]  (100 + 1 + 2 + 3 + 4 + 5)

        >>> # Complex accumulation
        >>> async def async_accumulate(acc, item):
        ...     await asyncio.sleep(0.01)  # Simulate async work
        ...     return acc + item ** 2
        >>>
        >>> sum_squares = await (range(5) | reduce(async_accumulate, 0)).result()
        >>> # [30]  (0 + 1 + 4 + 9 + 16)

    Note:
        - The output is a single item (the final accumulated value)
        - Over an empty sequence the initial value is emitted unchanged
        - Execution order is left-to-right: reduce(f, [a, b, c]) = f(f(a, b), c)
    """
    return Reduce(reducer, initial, error_policy)
