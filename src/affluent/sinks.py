"""Terminal operations draining a stream.

Sinks pull a stream until it is exhausted and turn the items into a list, side
effects, writes to external destinations, or an externally pollable readable.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from affluent.errors import ErrorPolicy, SinkWriteError, StructuralError
from affluent.stream import Stream
from affluent.steps.tap import _TapProcessor
from affluent.tasks import OrderedWriter, first_error

T = TypeVar("T")

logger = logging.getLogger(__name__)


@runtime_checkable
class PipeDestination(Protocol[T]):
    """External sink accepting one item at a time.

    ``write`` and ``end`` may be plain functions or coroutines. A write
    fails by raising.
    """

    def write(self, item: T) -> Any: ...

    def end(self) -> Any: ...


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


async def write_to(destination: PipeDestination[T], item: T):
    """Write one item, wrapping any failure in a SinkWriteError."""
    try:
        await _maybe_await(destination.write(item))
    except Exception as e:
        raise SinkWriteError(e, destination, item) from e


async def end_all(destinations: Sequence[PipeDestination[Any]]):
    """Signal completion to every destination, in order."""
    for destination in destinations:
        await _maybe_await(destination.end())


async def result(stream: Stream[T]) -> List[T]:
    """Drain ``stream`` into a list, preserving order."""
    return await stream.to_list()


async def each(
    stream: Stream[T],
    func: Callable[[T], Any],
    error_policy: Optional[ErrorPolicy[T, Any]] = None,
):
    """Run ``func`` on every item, one after the other.

    Skip and substitute outcomes of the error policy both move on to the
    next item; propagate stops the drain.
    """
    processor = _TapProcessor(stream.claim(), func, error_policy, "each")
    async for _ in processor.process_stream():
        pass


async def pipe(stream: Stream[T], destinations: Sequence[PipeDestination[T]]):
    """Write every item to every destination, then end them all.

    For each item the destinations are written concurrently, and each
    destination receives the items in order. If a write fails, the other
    destinations still receive that item, then the first failure is raised
    as a SinkWriteError and draining stops without ending the destinations.

    Args:
        stream: The stream to drain
        destinations: Destinations, written in the given order

    Raises:
        SinkWriteError: When a destination rejects a write
    """
    if not destinations:
        raise StructuralError("pipe requires at least one destination")

    stream.claim()
    count = 0
    try:
        async for item in stream:
            outcomes = await asyncio.gather(
                *(write_to(destination, item) for destination in destinations),
                return_exceptions=True,
            )
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    raise outcome
            count += 1
    finally:
        if not stream.consumed:
            await stream.aclose()

    await end_all(destinations)
    logger.debug("Piped %d items to %d destinations", count, len(destinations))


async def pipe_first(stream: Stream[T], destinations: Sequence[PipeDestination[T]]):
    """Like ``pipe`` but only the first destination's writes are awaited.

    The other destinations are fed by background writers, each receiving the
    items in order at its own pace. They are drained before every destination
    is ended, so this returns once all writes completed.

    Raises:
        SinkWriteError: When any destination rejects a write
    """
    if not destinations:
        raise StructuralError("pipe_first requires at least one destination")

    stream.claim()
    first, *rest = destinations
    writers = [
        OrderedWriter(lambda item, destination=destination: write_to(destination, item))
        for destination in rest
    ]

    try:
        async with asyncio.TaskGroup() as tg:
            for writer in writers:
                tg.create_task(writer.run())

            try:
                async for item in stream:
                    for writer in writers:
                        writer.put(item)
                    await write_to(first, item)
            finally:
                for writer in writers:
                    writer.close()
                if not stream.consumed:
                    await stream.aclose()
    except Exception as e:
        if isinstance(e, ExceptionGroup):
            raise first_error(e)
        raise

    await end_all(destinations)
    logger.debug("Piped to %d destinations, first on the critical path", len(destinations))


@dataclass
class StreamOptions:
    """Options for ``to_stream``.

    Attributes:
        object_mode: Emit raw items instead of their serialized form
        serializer: Turns an item into text when not in object mode
        encoding: If set, serialized text is encoded to bytes
    """

    object_mode: bool = False
    serializer: Callable[[Any], str] = json.dumps
    encoding: Optional[str] = None


class ReadableStream(Generic[T]):
    """Externally pollable view of a stream.

    Each ``read()`` pulls exactly one item upstream. In the default mode the
    item is serialized (JSON text, or bytes when an encoding is set); in
    object mode it is returned as is. The end of the stream closes the
    readable.

    Example:
        >>> readable = to_stream(Stream.from_iterable([{"a": 1}]))
        >>> await readable.read()
        '{"a": 1}'
        >>> await readable.read()
        ''
    """

    def __init__(self, stream: Stream[T], options: Optional[StreamOptions] = None):
        self._stream = stream.claim()
        self.options = options or StreamOptions()
        self.closed = False

    def _render(self, item: T) -> Any:
        if self.options.object_mode:
            return item
        text = self.options.serializer(item)
        if self.options.encoding:
            return text.encode(self.options.encoding)
        return text

    @property
    def eof(self) -> Any:
        """Value returned by ``read`` once the readable is closed."""
        if self.options.object_mode:
            return None
        return b"" if self.options.encoding else ""

    async def read(self) -> Any:
        """Read the next chunk, or ``eof`` once the stream has ended.

        In object mode, prefer ``async for``: a ``None`` item cannot be told
        apart from the end.
        """
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            return self.eof

    def __aiter__(self) -> AsyncIterator[Any]:
        return self

    async def __anext__(self) -> Any:
        if self.closed:
            raise StopAsyncIteration
        try:
            item = await self._stream.pull()
        except StopAsyncIteration:
            self.closed = True
            raise
        return self._render(item)

    async def aclose(self):
        """Close the readable and the stream behind it."""
        self.closed = True
        await self._stream.aclose()


def to_stream(stream: Stream[T], options: Optional[StreamOptions] = None) -> ReadableStream[T]:
    """Expose ``stream`` as a ReadableStream."""
    return ReadableStream(stream, options)


class QueueDestination(Generic[T]):
    """Destination putting items on an ``asyncio.Queue``.

    ``end`` puts ``end_marker`` so that the consumer knows to stop.
    """

    def __init__(self, queue: asyncio.Queue, end_marker: Any = None):
        self.queue = queue
        self.end_marker = end_marker

    async def write(self, item: T):
        await self.queue.put(item)

    async def end(self):
        await self.queue.put(self.end_marker)


class StreamWriterDestination(Generic[T]):
    """Destination writing serialized items to an ``asyncio.StreamWriter``.

    Each item is serialized, terminated by ``newline`` and encoded; the writer
    is drained after every write so slow peers apply backpressure to this
    destination. ``end`` closes the writer.
    """

    def __init__(
        self,
        writer: asyncio.StreamWriter,
        serializer: Callable[[Any], str] = json.dumps,
        encoding: str = "utf-8",
        newline: str = "\n",
    ):
        self.writer = writer
        self.serializer = serializer
        self.encoding = encoding
        self.newline = newline

    async def write(self, item: T):
        text = item if isinstance(item, str) else self.serializer(item)
        self.writer.write((text + self.newline).encode(self.encoding))
        await self.writer.drain()

    async def end(self):
        self.writer.close()
        await self.writer.wait_closed()


class CallbackDestination(Generic[T]):
    """Destination built from plain callables."""

    def __init__(self, on_write: Callable[[T], Any], on_end: Optional[Callable[[], Any]] = None):
        self.on_write = on_write
        self.on_end = on_end

    def write(self, item: T) -> Any:
        return self.on_write(item)

    def end(self) -> Any:
        if self.on_end is not None:
            return self.on_end()
        return None

    def __repr__(self):
        return f"CallbackDestination({getattr(self.on_write, '__name__', self.on_write)!r})"
