from typing import AsyncIterator, List, Optional, Pattern, Union
import re

from ..base import Step, Stream
from ..errors import StructuralError
from ..processors import StatelessStreamProcessor


def split_text(text: str, separator: Union[str, Pattern[str]], limit: Optional[int] = None) -> List[str]:
    """Split ``text`` on a string or regular expression separator.

    An empty string separator splits into characters. ``limit`` caps the
    number of parts returned; the rest of the text is discarded.

    Raises:
        TypeError: If ``text`` is not a string
    """
    if not isinstance(text, str):
        raise TypeError(f"split expects string items, got {type(text).__name__}")

    if isinstance(separator, re.Pattern):
        parts = separator.split(text)
    elif separator == "":
        parts = list(text)
    else:
        parts = text.split(separator)

    if limit is not None:
        parts = parts[:limit]
    return parts


class _SplitProcessor(StatelessStreamProcessor[str, List[str]]):
    """Split processor."""

    def __init__(
        self,
        input_stream: Stream[str],
        separator: Union[str, Pattern[str]],
        limit: Optional[int],
        step_name: str,
    ):
        super().__init__(input_stream, step_name=step_name)
        self.separator = separator
        self.limit = limit

    async def _process_item(self, item: str) -> AsyncIterator[List[str]]:
        yield split_text(item, self.separator, self.limit)


class Split(Step[str, List[str]]):
    """Split each string item, emitting the list of parts per item.

    The parts are not flattened; follow with ``flat()`` to get one item per
    part.

    Example:
        >>> await (["a,b", "c"] | split(",")).result()
        >>> # [["a", "b"], ["c"]]
    """

    def __init__(self, separator: Union[str, Pattern[str]], limit: Optional[int] = None):
        if not isinstance(separator, (str, re.Pattern)):
            raise StructuralError(
                f"separator must be a string or compiled pattern, got {type(separator).__name__}"
            )
        if limit is not None and limit < 0:
            raise StructuralError("limit must be greater than or equal to 0")

        self.separator = separator
        self.limit = limit

    def _build_processor(self, input_stream: Stream[str]) -> _SplitProcessor:
        return _SplitProcessor(input_stream, self.separator, self.limit, self.name)


def split(separator: Union[str, Pattern[str]], limit: Optional[int] = None) -> Split:
    """Create a step splitting each string item on ``separator``."""
    return Split(separator, limit)
