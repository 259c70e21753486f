from typing import List

from ..base import Step, Stream
from ..processors import StatefulStreamProcessor


class _JoinProcessor(StatefulStreamProcessor[str, str]):
    """Processor concatenating every string item with a delimiter."""

    def __init__(self, input_stream: Stream[str], delimiter: str, step_name: str):
        super().__init__(input_stream, step_name=step_name)
        self.delimiter = delimiter

    async def _process_items(self, items: List[str]) -> List[str]:
        # str.join raises TypeError on non-string items
        return [self.delimiter.join(items)]


class Join(Step[str, str]):
    """Join all string items into one string once the input is exhausted.

    Example:
        >>> await (["a", "b", "c"] | join("-")).result()
        >>> # ["a-b-c"]
    """

    def __init__(self, delimiter: str = ""):
        if not isinstance(delimiter, str):
            raise TypeError(f"delimiter must be a string, got {type(delimiter).__name__}")
        self.delimiter = delimiter

    def _build_processor(self, input_stream: Stream[str]) -> _JoinProcessor:
        return _JoinProcessor(input_stream, self.delimiter, self.name)


def join(delimiter: str = "") -> Join:
    """Create a step joining all string items with ``delimiter``."""
    return Join(delimiter)
