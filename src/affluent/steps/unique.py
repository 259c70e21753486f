from typing import Any, AsyncIterator, Callable, List, Optional, Set
import warnings

from affluent.base import Step
from affluent.stream import T, Stream
from affluent.processors import StatelessStreamProcessor


class _UniqueProcessor(StatelessStreamProcessor[T, T]):
    """Processor passing only the first occurrence of each item (or key).

    Hashable keys are remembered in a set; unhashable ones such as dicts and
    lists go to a list that is scanned linearly. Both are cleared once the
    output ends.
    """

    seen: Set[Any]
    seen_unhashable: List[Any]

    def __init__(
        self,
        input_stream: Stream[T],
        key: Callable[[T], Any] | None = None,
        max_unhashable_items: int = 10000,
        step_name: Optional[str] = None,
    ):
        """Initialize the unique processor.

        Args:
            input_stream: Stream to read items from
            key: Optional function to extract comparison key from each item
            max_unhashable_items: Number of tracked unhashable items that triggers a warning
            step_name: Name of the owning step
        """
        super().__init__(input_stream, step_name=step_name)
        self.key = key
        self.seen = set()
        self.seen_unhashable = []
        self.max_unhashable_items = max_unhashable_items

    async def _process_item(self, item: T) -> AsyncIterator[T]:
        """Pass an item through only if it was not seen before.

        Args:
            item: The item to check for uniqueness
        """
        key = self.key(item) if self.key else item

        try:
            # Try to use set for hashable items (faster)
            if key not in self.seen:
                self.seen.add(key)
                yield item
        except TypeError:
            # Handle unhashable items (like dicts) with list lookup
            if len(self.seen_unhashable) == self.max_unhashable_items:
                warnings.warn(
                    "Unique processor reached max unhashable items limit. Consider using a key function to avoid performance degradation."
                )

            if key not in self.seen_unhashable:
                self.seen_unhashable.append(key)
                yield item

    async def _cleanup(self):
        """Release memory by clearing tracking structures."""
        self.seen.clear()
        self.seen_unhashable.clear()


class Unique(Step[T, T]):
    """Pipeline step that removes duplicate items from the stream.

    The Unique step keeps only the first occurrence of each distinct item and
    preserves the order of first occurrences. Uniqueness is determined by
    equality or by applying an optional key function.

    Example:
        >>> pipeline = [1, 2, 1, 3, 2] | unique()
        >>> await pipeline.result()  # [1, 2, 3]

        >>> # Remove duplicates based on length
        >>> words = ["hi", "hello", "world", "bye"]
        >>> pipeline = words | unique(key=len)
        >>> await pipeline.result()  # ["hi", "hello", "bye"]

    Performance:
        - O(1) average case for hashable items (using set)
        - O(n) worst case for unhashable items (using list)
        - Memory usage grows with number of unique items

    Note:
        Only equality is used. Compound values compare the way their type
        defines ``==``, which is not guaranteed to be structural.
    """

    def __init__(
        self, key: Callable[[T], Any] | None = None, max_unhashable_items: int = 10000
    ):
        """Initialize the Unique step.

        Args:
            key: Optional function to extract comparison key from each item
            max_unhashable_items: Number of tracked unhashable items that triggers a warning
        """
        self.key = key
        self.max_unhashable_items = max_unhashable_items

    def _build_processor(self, input_stream: Stream[T]) -> _UniqueProcessor[T]:
        return _UniqueProcessor(
            input_stream, self.key, self.max_unhashable_items, self.name
        )


def unique(
    key: Callable[[T], Any] | None = None, max_unhashable_items: int = 10000
) -> Unique[T]:
    """Create a step that removes duplicate items from the stream.

    Args:
        key: Optional function to extract comparison key from each item.
             If None, items are compared directly for equality.
        max_unhashable_items: Maximum number of unhashable items to track
                             before issuing a performance warning.

    Returns:
        A Unique step that can be used in pipelines

    Examples:
        >>> # Case-insensitive string deduplication
        >>> words = ["Hello", "world", "HELLO", "World"]
        >>> await (words | unique(key=str.lower)).result()
        >>> # ["Hello", "world"]

    Warning:
        If tracking many unhashable items, performance will degrade and
        a warning will be issued at the configured limit.
    """
    return Unique(key, max_unhashable_items)
