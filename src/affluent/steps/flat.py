from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional

from affluent.base import Chain, Step, T, U
from affluent.errors import ErrorPolicy
from affluent.stream import Stream
from affluent.processors import StatelessStreamProcessor
from affluent.steps.map import Map

# Only ordered containers are expanded; strings, bytes and mappings pass through
SEQUENCE_TYPES = (list, tuple)


class _FlatProcessor(StatelessStreamProcessor[Any, Any]):
    """Processor expanding list items one level deep.

    Each list (or tuple) item is replaced by its elements, in order. Any other
    item is passed through unchanged.
    """

    async def _process_item(self, item: Any) -> AsyncIterator[Any]:
        """Yield the elements of a list item, or the item itself.

        Args:
            item: The item to expand
        """
        if not isinstance(item, SEQUENCE_TYPES):
            yield item
            return

        for element in item:
            yield element


class Flat(Step[Iterable[T], T]):
    """Pipeline step that flattens list items by one level.

    This is particularly useful for:
    - Undoing a chunk or a split
    - Breaking down lists produced by a previous map
    - One-to-many transformations (see ``flat_map``)

    Example:
        >>> # Extract nested list items
        >>> nested = [[1, 2], [3, [4, 5]], 6]
        >>> pipeline = nested | flat()
        >>> await pipeline.result()  # [1, 2, 3, [4, 5], 6]

    Note:
        Only one level is flattened. Strings are never split into characters.
    """

    def _build_processor(self, input_stream: Stream[Iterable[T]]) -> _FlatProcessor:
        """Build the processor for this flat step.

        Args:
            input_stream: Stream to read from

        Returns:
            A configured flat processor
        """
        return _FlatProcessor(input_stream, step_name=self.name)


class FlatMap(Chain[T, U]):
    """Pipeline step that maps each item to a list and flattens the results.

    Equivalent to ``Map(func) | Flat()``; the error policy guards ``func``.

    Example:
        >>> # Split strings into words
        >>> sentences = ["hello world", "python rocks"]
        >>> pipeline = sentences | flat_map(lambda s: s.split())
        >>> await pipeline.result()  # ["hello", "world", "python", "rocks"]
    """

    def __init__(
        self,
        func: Callable[[T], Awaitable[Iterable[U]] | Iterable[U]],
        error_policy: Optional[ErrorPolicy[T, Iterable[U]]] = None,
    ):
        """Initialize the FlatMap step.

        Args:
            func: Function that takes an item and returns a list of results
            error_policy: Optional policy for ``func`` failures
        """
        super().__init__([Map(func, error_policy), Flat()])
        self.func = func

    @property
    def name(self) -> str:
        return self.__class__.__name__


def flat() -> Flat[Any]:
    """Create a step flattening list items by one level.

    Returns:
        A Flat step that can be used in pipelines

    Examples:
        >>> # Undo a chunk
        >>> await (range(5) | chunk(2) | flat()).result()
        >>> # [0, 1, 2, 3, 4]

        >>> # Non-list items are kept as they are
        >>> await ([[1, 2], "ab", (3,)] | flat()).result()
        >>> # [1, 2, "ab", 3]
    """
    return Flat()


def flat_map(
    func: Callable[[T], Awaitable[Iterable[U]] | Iterable[U]],
    error_policy: Optional[ErrorPolicy[T, Iterable[U]]] = None,
) -> FlatMap[T, U]:
    """Create a flat_map step that applies a function and flattens the results.

    This function creates a flat mapping operation that applies a transformation
    function to each item, where the function returns a list of results.
    All results are flattened into a single output stream.

    Args:
        func: Function that takes an item and returns a list of results.
              Can be synchronous or asynchronous.
        error_policy: Optional policy for ``func`` failures. A substituted
              value is flattened like any other result.

    Returns:
        A FlatMap step that can be used in pipelines

    Examples:
        >>> # Text processing: split sentences into words
        >>> sentences = ["Hello world", "Python is great"]
        >>> words = await (sentences | flat_map(str.split)).result()
        >>> # ["Hello", "world", "Python", "is", "great"]

        >>> # Advanced: generate multiple items per input
        >>> def generate_variants(word):
        ...     return [word.upper(), word.lower(), word.title()]
        >>>
        >>> words = ["hello", "world"]
        >>> variants = await (words | flat_map(generate_variants)).result()
        >>> # ["HELLO", "hello", "Hello", "WORLD", "world", "World"]

    Note:
        ``func`` should return a list or tuple; any other return value is
        passed through as a single item, and an empty list contributes nothing.
    """
    return FlatMap(func, error_policy)
