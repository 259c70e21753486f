from typing import AsyncIterator, Awaitable, Callable, Optional

from ..base import Step, Stream, T
from ..errors import ErrorPolicy
from ..processors import SKIPPED, StatelessStreamProcessor


class _FilterProcessor(StatelessStreamProcessor[T, T]):
    """Processor that filters items based on a predicate function.

    Only items that satisfy the predicate (return True) are passed through
    to the output stream. Items that don't match are dropped.
    """

    def __init__(
        self,
        input_stream: Stream[T],
        predicate: Callable[[T], Awaitable[bool] | bool],
        error_policy: Optional[ErrorPolicy[T, bool]] = None,
        step_name: Optional[str] = None,
    ):
        """Initialize the filter processor.

        Args:
            input_stream: Stream to read items from
            predicate: Function that determines if an item should be kept
            error_policy: Policy for predicate failures
            step_name: Name of the owning step
        """
        super().__init__(input_stream, error_policy, step_name)
        self.predicate = predicate

    async def _process_item(self, item: T) -> AsyncIterator[T]:
        """Apply the predicate to an item and pass it through if it matches.

        A substituted value from the error policy is read as the keep/drop
        decision; a skip outcome drops the item.

        Args:
            item: The item to test
        """
        result = await self._safe_call(item, self.predicate, item)

        if result is not SKIPPED and result:
            yield item


class Filter(Step[T, T]):
    """Pipeline step that filters items based on a predicate function.

    The Filter step only allows items that satisfy the predicate condition
    to pass through to the next step. Items that don't match are dropped
    from the pipeline.

    The predicate function can be synchronous or asynchronous and should
    return True for items to keep, False for items to drop.

    Example:
        >>> # Keep only even numbers
        >>> pipeline = range(10) | filter(lambda x: x % 2 == 0)
        >>> await pipeline.result()  # [0, 2, 4, 6, 8]

        >>> # Treat items whose predicate raises as valid
        >>> pipeline = ["1", "x", "3"] | filter(str.isdigit, substitute_with(True))
    """

    def __init__(
        self,
        predicate: Callable[[T], Awaitable[bool] | bool],
        error_policy: Optional[ErrorPolicy[T, bool]] = None,
    ):
        """Initialize the Filter step.

        Args:
            predicate: Function that returns True for items to keep
            error_policy: Optional policy for predicate failures
        """
        if not callable(predicate):
            raise TypeError(f"predicate must be callable, got {type(predicate).__name__}")

        self.predicate = predicate
        self.error_policy = error_policy

    def _build_processor(self, input_stream: Stream[T]) -> _FilterProcessor[T]:
        """Build the processor for this filter step.

        Args:
            input_stream: Stream to read from

        Returns:
            A configured filter processor
        """
        return _FilterProcessor(
            input_stream, self.predicate, self.error_policy, self.name
        )


def filter(
    predicate: Callable[[T], Awaitable[bool] | bool],
    error_policy: Optional[ErrorPolicy[T, bool]] = None,
) -> Filter[T]:
    """Create a filter step that keeps items matching a predicate.

    This function creates a filter operation that only allows items satisfying
    the predicate condition to pass through the pipeline. The predicate can be
    either synchronous or asynchronous.

    Args:
        predicate: Function that returns True for items to keep, False to drop.
                  Can be async or sync.
        error_policy: Optional policy for predicate failures. SKIP drops the
                  item, SUBSTITUTE(value) keeps it iff ``value`` is truthy.

    Returns:
        A Filter step that can be used in pipelines

    Examples:
        >>> # Filter numbers
        >>> evens = filter(lambda x: x % 2 == 0)
        >>> result = await (range(6) | evens).result()
        >>> # [0, 2, 4]

        >>> # Async predicate
        >>> async def is_valid_email(email):
        ...     await asyncio.sleep(0.01)
        ...     return '@' in email and '.' in email
        >>>
        >>> emails = ["test@example.com", "invalid", "user@domain.org"]
        >>> valid_emails = await (emails | filter(is_valid_email)).result()
        >>> # ["test@example.com", "user@domain.org"]
    """
    return Filter(predicate, error_policy)
