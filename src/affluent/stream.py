from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Generic,
    Iterable,
    List,
    Optional,
    TypeVar,
)
import asyncio
import logging

from affluent.errors import StructuralError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Stream(Generic[T]):
    """Single-pass, pull-based, ordered async sequence.

    Stream is the uniform contract every step, sink and fork operates on.
    Each pull either returns the next value or raises StopAsyncIteration;
    once exhausted, further pulls keep raising StopAsyncIteration without
    touching the underlying source again.

    A stream has exactly one direct puller: the next step, a sink, or the
    fork subsystem. The puller takes ownership with ``claim()``, so a stream
    can never be chained twice by accident. Use ``affluent.fork`` when several
    consumers need the same items.

    Stream States:
    - claimed: A downstream step, sink or fork owns the stream
    - consumed: The source signalled exhaustion (or the stream was closed)

    Example:
        >>> stream = Stream.from_iterable([1, 2])
        >>> await stream.pull()  # 1
        >>> await stream.pull()  # 2
        >>> await stream.pull()  # raises StopAsyncIteration
    """

    def __init__(self, source: AsyncIterable[T], name: Optional[str] = None):
        """Initialize a new Stream.

        Args:
            source: Async iterable (usually an async generator) producing the items
            name: Optional label used in logs and reprs
        """
        if not hasattr(source, "__aiter__"):
            raise TypeError(
                f"source must be an async iterable, got {type(source).__name__}"
            )

        self._source = source
        self._iterator: Optional[AsyncIterator[T]] = None
        self.name = name or type(source).__name__
        self.claimed = False  # True if a downstream puller owns the stream
        self.consumed = False  # True once the source has been exhausted
        self._read_lock = asyncio.Lock()  # Lock to prevent concurrent reads

    def __repr__(self):
        return f"Stream({self.name})"

    def claim(self) -> "Stream[T]":
        """Take ownership of this stream as its single direct puller.

        Returns:
            The stream itself, for chaining

        Raises:
            StructuralError: If the stream already has a puller
        """
        if self.claimed:
            raise StructuralError(f"{self!r} has already been consumed or chained")
        self.claimed = True
        return self

    @classmethod
    def from_iterable(cls, data: Iterable[T]) -> "Stream[T]":
        """Create a stream from any synchronous iterable.

        Items are produced lazily, one per pull.
        """

        async def _generate():
            for item in data:
                yield item

        return cls(_generate(), name=f"iterable:{type(data).__name__}")

    @classmethod
    def from_async_iterable(cls, data: AsyncIterable[T]) -> "Stream[T]":
        """Wrap an async iterable (generator, StreamReader, ...)."""
        if isinstance(data, Stream):
            return data
        return cls(data)

    @classmethod
    def from_value(cls, value: T) -> "Stream[T]":
        """Create a stream producing exactly one item."""
        return cls.from_iterable([value])

    @classmethod
    def from_awaitable(cls, value: Awaitable[T]) -> "Stream[T]":
        """Create a stream producing the single result of a deferred value.

        The awaitable is only awaited on the first pull.
        """

        async def _generate():
            yield await value

        return cls(_generate(), name="awaitable")

    @classmethod
    def of(cls, data: Any) -> "Stream[Any]":
        """Coerce a stream, async iterable or iterable into a Stream.

        Raises:
            TypeError: If ``data`` is not iterable at all
        """
        if isinstance(data, Stream):
            return data
        if hasattr(data, "__aiter__"):
            return cls(data)
        if isinstance(data, (str, bytes)) or not hasattr(data, "__iter__"):
            raise TypeError(
                f"Cannot build a stream from {type(data).__name__}; "
                "use Stream.from_value() for single values"
            )
        return cls.from_iterable(data)

    async def pull(self) -> T:
        """Pull the next item.

        Returns:
            The next item of the sequence

        Raises:
            StopAsyncIteration: When the sequence is exhausted (idempotent)
        """
        async with self._read_lock:
            return await self._next()

    async def _next(self) -> T:
        if self.consumed:
            raise StopAsyncIteration

        if self._iterator is None:
            self._iterator = aiter(self._source)

        try:
            return await anext(self._iterator)
        except StopAsyncIteration:
            self.consumed = True
            logger.debug("%r exhausted", self)
            raise

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await self.pull()

    async def aclose(self):
        """Stop the stream and close its source if it supports closing.

        Closing is cooperative: a pull already in flight is not interrupted.
        Afterwards the stream behaves as exhausted.
        """
        self.consumed = True
        iterator = self._iterator if self._iterator is not None else self._source
        close = getattr(iterator, "aclose", None)
        if close is not None:
            await close()

    async def to_list(self) -> List[T]:
        """Drain the remaining items into a list.

        Raises:
            StructuralError: If the stream is owned by another puller
        """
        self.claim()
        items = []
        async for item in self:
            items.append(item)
        return items
