import asyncio
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    Pattern,
    TypeVar,
    Union,
)

from affluent import sinks, sources
from affluent.base import Step
from affluent.errors import ErrorPolicy
from affluent.fork import ForkFactory, fork
from affluent.sinks import PipeDestination, ReadableStream, StreamOptions
from affluent.stream import Stream
from affluent.steps import (
    NOT_PROVIDED,
    Chunk,
    Collect,
    Filter,
    Flat,
    FlatMap,
    GroupBy,
    Join,
    Map,
    Reduce,
    Split,
    Take,
    Tap,
    Unique,
    Validate,
)

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Pipeline(Generic[T]):
    """Chainable façade over one stream.

    A Pipeline wraps the current stream of a processing chain. Every chaining
    method returns a new Pipeline wrapping the transformed stream, and the
    stream of the pipeline it was called on is consumed: reusing a pipeline
    after chaining or draining it raises StructuralError. Use ``fork()`` when
    several chains must read the same items.

    Nothing runs until a terminal method (``result``, ``each``, ``pipe``,
    ``pipe_first``, ``to_stream``, ``stream``) pulls the items.

    Usage patterns:
    1. Method chaining: Pipeline(data).map(f).filter(g)
    2. Steps with |: data | Map(f) | Filter(g)
    3. Reusable fragments: pipeline.apply(fragment)

    Example:
        >>> pipeline = Pipeline(range(10)).map(lambda x: x * 2).filter(lambda x: x > 5)
        >>> await pipeline.result()
        [6, 8, 10, 12, 14, 16, 18]
    """

    def __init__(self, source: Union["Pipeline[T]", Stream[T], Iterable[T], AsyncIterable[T]]):
        """Initialize a new Pipeline.

        Args:
            source: Pipeline, stream, async iterable or iterable to read from

        Raises:
            TypeError: If the source is not iterable
        """
        if isinstance(source, Pipeline):
            source = source.to_iterator()

        self._stream: Stream[T] = Stream.of(source)
        self._fork: Optional[ForkFactory[T]] = None

    def __repr__(self):
        return f"Pipeline({self._stream!r})"

    @classmethod
    def from_iterable(cls, data: Iterable[T]) -> "Pipeline[T]":
        return cls(Stream.from_iterable(data))

    @classmethod
    def from_async_iterable(cls, data: AsyncIterable[T]) -> "Pipeline[T]":
        return cls(Stream.from_async_iterable(data))

    @classmethod
    def from_value(cls, value: T) -> "Pipeline[T]":
        """Pipeline producing exactly ``value``."""
        return cls(Stream.from_value(value))

    @classmethod
    def from_awaitable(cls, value: Awaitable[T]) -> "Pipeline[T]":
        """Pipeline producing the result of a deferred value."""
        return cls(Stream.from_awaitable(value))

    @classmethod
    def from_byte_stream(
        cls,
        reader: Union[asyncio.StreamReader, AsyncIterable[bytes]],
        encoding: str = "utf-8",
    ) -> "Pipeline[str]":
        """Pipeline of decoded text chunks read from a byte stream."""
        return cls(sources.read_text(reader, encoding))

    @classmethod
    def from_line_reader(
        cls,
        reader: Union[asyncio.StreamReader, AsyncIterable[bytes]],
        skip_empty_lines: bool = False,
        encoding: str = "utf-8",
    ) -> "Pipeline[str]":
        """Pipeline of the lines of a byte stream."""
        return cls(sources.read_lines(reader, skip_empty_lines, encoding))

    @classmethod
    def from_pipeline(cls, pipeline: "Pipeline[T]") -> "Pipeline[T]":
        """Continue from the current stream of another pipeline."""
        return cls(pipeline)

    def then(self, step: Step[T, U]) -> "Pipeline[U]":
        """Apply a step (or a Chain of steps) to this pipeline.

        Args:
            step: The step to append

        Returns:
            A new Pipeline over the step's output
        """
        if not isinstance(step, Step):
            raise TypeError(f"Expected a Step, got {type(step).__name__}")
        return Pipeline(step.from_stream(self._stream))

    def __or__(self, other: Step[T, U]) -> "Pipeline[U]":
        """Support pipeline | step syntax."""
        if not isinstance(other, Step):
            return NotImplemented
        return self.then(other)

    def map(
        self,
        func: Callable[[T], Awaitable[U] | U],
        error_policy: Optional[ErrorPolicy[T, U]] = None,
    ) -> "Pipeline[U]":
        """Transform each item with ``func``."""
        return self.then(Map(func, error_policy))

    def filter(
        self,
        predicate: Callable[[T], Awaitable[bool] | bool],
        error_policy: Optional[ErrorPolicy[T, bool]] = None,
    ) -> "Pipeline[T]":
        """Keep the items for which ``predicate`` is truthy."""
        return self.then(Filter(predicate, error_policy))

    def tap(
        self,
        func: Callable[[T], Any],
        error_policy: Optional[ErrorPolicy[T, Any]] = None,
    ) -> "Pipeline[T]":
        """Run ``func`` on each item and pass the item on unchanged."""
        return self.then(Tap(func, error_policy))

    def chunk(self, size: int) -> "Pipeline[List[T]]":
        """Group consecutive items into lists of ``size``."""
        return self.then(Chunk(size))

    def take(self, count: int) -> "Pipeline[T]":
        """Keep the first ``count`` items and stop pulling afterwards."""
        return self.then(Take(count))

    def flat(self) -> "Pipeline[Any]":
        """Expand list items one level."""
        return self.then(Flat())

    def flat_map(
        self,
        func: Callable[[T], Awaitable[Iterable[U]] | Iterable[U]],
        error_policy: Optional[ErrorPolicy[T, Iterable[U]]] = None,
    ) -> "Pipeline[U]":
        """Map each item to a list and flatten the lists."""
        return self.then(FlatMap(func, error_policy))

    def unique(self, key: Optional[Callable[[T], Any]] = None) -> "Pipeline[T]":
        """Drop items equal to an earlier item (or sharing its key)."""
        return self.then(Unique(key))

    def collect(self) -> "Pipeline[List[T]]":
        """Replace the items by a single list of all of them."""
        return self.then(Collect())

    def reduce(
        self,
        func: Callable[[U, T], Awaitable[U] | U],
        initial: Any = NOT_PROVIDED,
        error_policy: Optional[ErrorPolicy[T, U]] = None,
    ) -> "Pipeline[U]":
        """Fold the items from left to right into a single item."""
        return self.then(Reduce(func, initial, error_policy))

    def group_by(self, key: Union[str, Callable[[T], Any]]) -> "Pipeline[Dict[Any, List[T]]]":
        """Fold the records into one dict of lists keyed by ``key``."""
        return self.then(GroupBy(key))

    def split(
        self, separator: Union[str, Pattern[str]], limit: Optional[int] = None
    ) -> "Pipeline[List[str]]":
        """Split each string item into a list of parts."""
        return self.then(Split(separator, limit))

    def join(self, delimiter: str = "") -> "Pipeline[str]":
        """Join all string items into one string."""
        return self.then(Join(delimiter))

    def validate(
        self,
        predicate: Callable[[T], Awaitable[bool] | bool],
        on_invalid: Callable[[T], Any],
    ) -> "Pipeline[T]":
        """Keep valid items; report and drop the others."""
        return self.then(Validate(predicate, on_invalid))

    def apply(self, func: Callable[["Pipeline[T]"], R]) -> R:
        """Pass this pipeline to ``func`` and return what it returns.

        Example:
            >>> def clean(p):
            ...     return p.map(str.strip).filter(bool)
            >>> await Pipeline([" a", " "]).apply(clean).result()
            ['a']
        """
        return func(self)

    def fork(self) -> "Pipeline[T]":
        """Return a new pipeline over an independent branch of this one.

        The first call wraps the current stream in a fork; every call returns
        a pipeline on a fresh branch. Each branch sees every item exactly
        once while the current stream is pulled only once per item. Create
        all branches before consuming any of them.

        Example:
            >>> source = Pipeline(range(5))
            >>> left, right = source.fork(), source.fork()
            >>> await asyncio.gather(left.result(), right.result())
            [[0, 1, 2, 3, 4], [0, 1, 2, 3, 4]]
        """
        if self._fork is None:
            self._fork = fork(self._stream)
        return Pipeline(self._fork.fork())

    async def result(self) -> List[T]:
        """Run the pipeline and return every item, in order."""
        return await sinks.result(self._stream)

    async def each(
        self,
        func: Callable[[T], Any],
        error_policy: Optional[ErrorPolicy[T, Any]] = None,
    ):
        """Run the pipeline, calling ``func`` on every item."""
        await sinks.each(self._stream, func, error_policy)

    async def pipe(self, *destinations: PipeDestination[T]):
        """Run the pipeline, writing every item to every destination."""
        await sinks.pipe(self._stream, destinations)

    async def pipe_first(self, *destinations: PipeDestination[T]):
        """Run the pipeline, awaiting only the first destination's writes."""
        await sinks.pipe_first(self._stream, destinations)

    def to_stream(self, options: Optional[StreamOptions] = None, **kwargs: Any) -> ReadableStream[T]:
        """Expose the pipeline as a pollable readable.

        Args:
            options: Readable options; keyword arguments build one instead

        Raises:
            TypeError: If both ``options`` and keyword arguments are given
        """
        if options is not None and kwargs:
            raise TypeError("Pass either a StreamOptions or keyword options, not both")
        if options is None:
            options = StreamOptions(**kwargs)
        return sinks.to_stream(self._stream, options)

    def to_iterator(self) -> Stream[T]:
        """Hand the current stream over to the caller.

        The pipeline can not be used afterwards.
        """
        return Stream(self._stream.claim(), name=self._stream.name)

    def __aiter__(self) -> AsyncIterator[T]:
        return self.to_iterator()

    async def stream(self) -> AsyncIterator[T]:
        """Run the pipeline and yield results as they are produced.

        Yields:
            Pipeline results, in order
        """
        async for item in self.to_iterator():
            yield item


def pipeline(source: Union[Pipeline[T], Stream[T], Iterable[T], AsyncIterable[T]]) -> Pipeline[T]:
    """Create a pipeline over ``source``."""
    return Pipeline(source)
