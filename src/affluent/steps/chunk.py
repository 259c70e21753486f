from typing import AsyncIterator, List

from ..base import Step, Stream, T
from ..errors import StructuralError
from ..processors import StatelessStreamProcessor


class _ChunkProcessor(StatelessStreamProcessor[T, List[T]]):
    """Chunk processor."""

    def __init__(self, input_stream: Stream[T], size: int, step_name: str):
        super().__init__(input_stream, step_name=step_name)
        self.size = size
        self.current_chunk: List[T] = []

    async def _process_item(self, item: T) -> AsyncIterator[List[T]]:
        """Add an item to the current chunk, emitting it once full."""
        self.current_chunk.append(item)

        if len(self.current_chunk) == self.size:
            chunk, self.current_chunk = self.current_chunk, []
            yield chunk

    async def _flush(self) -> AsyncIterator[List[T]]:
        """Emit any remaining items in the final chunk."""
        if self.current_chunk:
            chunk, self.current_chunk = self.current_chunk, []
            yield chunk


class Chunk(Step[T, List[T]]):
    """Group consecutive items into lists of ``size`` items.

    The last list holds the remainder and may be shorter.
    """

    def __init__(self, size: int):
        if isinstance(size, bool) or not isinstance(size, int):
            raise StructuralError(f"Chunk size must be an integer, got {type(size).__name__}")
        if size <= 0:
            raise StructuralError("Chunk size must be greater than 0")
        self.size = size

    def _build_processor(self, input_stream: Stream[T]) -> _ChunkProcessor[T]:
        return _ChunkProcessor(input_stream, self.size, self.name)


def chunk(size: int) -> Chunk[T]:
    """Chunk operation to group items into lists of specified size."""
    return Chunk(size)
