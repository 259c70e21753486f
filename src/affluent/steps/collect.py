from typing import List

from ..base import Step, Stream, T
from ..processors import StatefulStreamProcessor


class _CollectProcessor(StatefulStreamProcessor[T, List[T]]):
    """Processor gathering every item into one list."""

    async def _process_items(self, items: List[T]) -> List[List[T]]:
        return [items]


class Collect(Step[T, List[T]]):
    """Pipeline step emitting all items as a single list.

    The list is emitted once the input is exhausted; an empty input emits an
    empty list. Afterwards the output stream is exhausted.

    Example:
        >>> await (range(3) | collect()).result()
        >>> # [[0, 1, 2]]
    """

    def _build_processor(self, input_stream: Stream[T]) -> _CollectProcessor[T]:
        return _CollectProcessor(input_stream, step_name=self.name)


def collect() -> Collect[T]:
    """Create a step that materializes the whole stream into one list."""
    return Collect()
