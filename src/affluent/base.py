from typing import TYPE_CHECKING, Any, AsyncIterable, Generic, Iterable, List, TypeVar, Union
from abc import ABC

from affluent.stream import Stream
from affluent.processors import StreamProcessor

if TYPE_CHECKING:
    from affluent.pipeline import Pipeline

# Type variables
T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")


class WithPipeline(ABC, Generic[T, U]):
    """Abstract base for objects that can be chained with ``|``.

    The class supports two chaining patterns:
    1. step | step  -> Chain (reusable fragment, no data yet)
    2. data | step  -> Pipeline (data binding)
    """

    def __or__(self, other: "Step[U, V]") -> "WithPipeline[T, V]":
        """Chain this object with another using | operator.

        Args:
            other: The step to chain after this one

        Returns:
            The combined object
        """
        if not isinstance(other, Step):
            return NotImplemented
        return self.then(other)

    def then(self, other: "Step[U, V]") -> "WithPipeline[T, V]":
        """Chain this object with another sequentially.

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError

    def __ror__(self, other: Union[Iterable[T], AsyncIterable[T]]) -> "Pipeline[U]":
        """Support data | step syntax (reverse pipe operator).

        Args:
            other: The data to pipe into this object

        Returns:
            A new Pipeline over the data
        """
        return self.with_input(other)

    def with_input(self, data: Union[Iterable[T], AsyncIterable[T]]) -> "Pipeline[U]":
        """Create a pipeline running this object over ``data``.

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError


class Step(WithPipeline[T, U]):
    """Base class for individual pipeline steps.

    A Step is a reusable description of a transformation from items of type T
    to items of type U. It holds no per-run state: every time it is applied to
    a stream, a fresh processor is built, so the same step object can be used
    in many pipelines.

    Steps can be:
    - Chained together: step1 | step2 | step3
    - Applied to data: data | step
    - Appended to a pipeline: pipeline | step, or pipeline.then(step)

    Subclasses must implement _build_processor to define their processing logic.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def from_stream(self, input_stream: Stream[T]) -> Stream[U]:
        """Apply this step to a stream.

        The input stream is claimed: it cannot be chained or consumed again.

        Args:
            input_stream: The stream to transform

        Returns:
            A new stream that lazily pulls from ``input_stream``
        """
        processor = self._build_processor(input_stream.claim())
        return Stream(processor.process_stream(), name=self.name)

    def _build_processor(self, input_stream: Stream[T]) -> StreamProcessor[T, U]:
        """Build the processor that implements this step's logic.

        Args:
            input_stream: Stream to read input from

        Returns:
            A processor that implements this step

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError

    def then(self, other: "Step[U, V]") -> "Chain[T, V]":
        """Chain this step with another step.

        Args:
            other: The step to run after this one

        Returns:
            A Chain running both steps in order
        """
        if not isinstance(other, Step):
            raise TypeError(f"Cannot chain {type(other).__name__} after a step")
        if isinstance(other, Chain):
            return Chain([self] + other.steps)
        return Chain([self, other])

    def with_input(self, data: Union[Iterable[T], AsyncIterable[T]]) -> "Pipeline[U]":
        """Create a pipeline applying this step to ``data``."""
        from affluent.pipeline import Pipeline

        return Pipeline(data).then(self)


class Chain(Step[T, U]):
    """A reusable sequence of steps applied as one.

    Example:
        >>> clean = Map(str.strip) | Filter(bool) | Unique()
        >>> await (["a ", "", "a", "b"] | clean).result()
        ['a', 'b']

    Attributes:
        steps: Steps applied in order
    """

    steps: List[Step[Any, Any]]

    def __init__(self, steps: List[Step[Any, Any]]):
        if not isinstance(steps, list):
            raise TypeError(f"steps must be a list, got {type(steps).__name__}")
        for step in steps:
            if not isinstance(step, Step):
                raise TypeError(f"Chain accepts only steps, got {type(step).__name__}")

        self.steps = steps

    @property
    def name(self) -> str:
        return " | ".join(step.name for step in self.steps)

    def from_stream(self, input_stream: Stream[T]) -> Stream[U]:
        stream = input_stream
        for step in self.steps:
            stream = step.from_stream(stream)
        return stream

    def then(self, other: "Step[U, V]") -> "Chain[T, V]":
        if not isinstance(other, Step):
            raise TypeError(f"Cannot chain {type(other).__name__} after a step")
        if isinstance(other, Chain):
            return Chain(self.steps + other.steps)
        return Chain(self.steps + [other])
