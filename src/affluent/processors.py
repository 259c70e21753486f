from typing import Any, AsyncIterator, Callable, Generic, List, Optional, TypeVar
from abc import ABC
import inspect
import logging

from affluent.stream import Stream
from affluent.errors import (
    ErrorAction,
    ErrorPolicy,
    StageCallbackError,
    resolve_outcome,
)

T = TypeVar("T")
U = TypeVar("U")

logger = logging.getLogger(__name__)


class _Skipped:
    """Sentinel returned by ``_safe_call`` when the policy drops the item."""

    def __repr__(self):
        return "SKIPPED"


SKIPPED = _Skipped()


class StreamProcessor(ABC, Generic[T, U]):
    """Base class for all stream processors.

    A processor is the running instance of a step bound to one input stream.
    It lazily pulls from the input and produces the step's output through
    ``process_stream``, an async generator that the output Stream wraps.

    The processor operates by:
    1. Pulling items from input_stream, one per downstream demand
    2. Processing items according to subclass logic
    3. Yielding results to whoever pulls the output stream
    4. Handling callback errors according to the step's error policy

    Attributes:
        input_stream: Stream to pull items from
        error_policy: Optional policy consulted when a user callback fails
        step_name: Name used in errors and logs
    """

    input_stream: Stream[T]

    def __init__(
        self,
        input_stream: Stream[T],
        error_policy: Optional[ErrorPolicy[T, Any]] = None,
        step_name: Optional[str] = None,
    ):
        """Initialize the processor.

        Args:
            input_stream: Stream to pull items from
            error_policy: Policy for callback failures, None means propagate
            step_name: Name of the owning step
        """
        self.input_stream = input_stream
        self.error_policy = error_policy
        self.step_name = step_name or self.__class__.__name__

    def process_stream(self) -> AsyncIterator[U]:
        """Produce the output items.

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError

    async def _safe_call(self, item: T, func: Callable[..., Any], *args: Any) -> Any:
        """Run a user callback under the step's error policy.

        The callback can be synchronous or asynchronous.

        Args:
            item: The input item the callback is working on
            func: The user callback
            *args: Arguments for the callback

        Returns:
            The callback result, the substituted value, or SKIPPED

        Raises:
            Exception: The original error when the step has no policy
            StageCallbackError: When the policy chooses to propagate
        """
        try:
            result = func(*args)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            if self.error_policy is None:
                raise

            outcome = await resolve_outcome(self.error_policy, item, e)
            if outcome.action is ErrorAction.SKIP:
                return SKIPPED
            if outcome.action is ErrorAction.SUBSTITUTE:
                return outcome.value
            raise StageCallbackError(e, self.step_name, item) from e

    async def _cleanup(self):
        """Perform any necessary cleanup after processing.

        Subclasses can override this method to release state once the
        output is exhausted or abandoned.
        """
        pass

    async def _release_input(self):
        """Close the input stream when the output stopped before the input ended."""
        if not self.input_stream.consumed:
            logger.debug("%s released %r before its end", self.step_name, self.input_stream)
            await self.input_stream.aclose()


class StatelessStreamProcessor(StreamProcessor[T, U]):
    """Stream processor handling one item at a time.

    StatelessStreamProcessor is designed for operations like map, filter, and
    chunk that react to each item as it arrives. Nothing is pulled from the
    input until the output is pulled, and each pulled item may produce zero,
    one or several outputs.

    The processor:
    - Pulls one input item per iteration
    - Yields whatever ``_process_item`` yields for it
    - Stops pulling as soon as ``finished`` is set
    - Yields whatever ``_flush`` yields once the input is exhausted

    Example operations: map, filter, tap, take, chunk, reduce
    """

    finished: bool = False

    async def process_stream(self) -> AsyncIterator[U]:
        """Pull input items lazily and yield processed results."""
        try:
            while not self.finished:
                try:
                    item = await self.input_stream.pull()
                except StopAsyncIteration:
                    break

                async for result in self._process_item(item):
                    yield result

            async for result in self._flush():
                yield result
        finally:
            await self._cleanup()
            await self._release_input()

    def _process_item(self, item: T) -> AsyncIterator[U]:
        """Process a single item and yield its results.

        Subclasses implement this as an async generator.

        Args:
            item: The item to process

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError

    async def _flush(self) -> AsyncIterator[U]:
        """Yield trailing results once the input is exhausted."""
        return
        yield

    async def _stop_upstream(self):
        """Stop pulling and close the input stream (directional cancellation)."""
        self.finished = True
        logger.debug("%s closing %r", self.step_name, self.input_stream)
        await self.input_stream.aclose()


class StatefulStreamProcessor(StreamProcessor[T, U]):
    """Stream processor for operations that require access to all items.

    StatefulStreamProcessor is designed for operations that need to see all
    input items before producing output, such as collecting or joining.
    It buffers all items in memory before processing.

    Warning:
        This processor loads all items into memory, which may not be suitable
        for very large datasets.
    """

    async def process_stream(self) -> AsyncIterator[U]:
        """Drain the input, then yield the results of ``_process_items``."""
        try:
            input_data = []
            async for item in self.input_stream:
                input_data.append(item)

            for result in await self._process_items(input_data):
                yield result
        finally:
            await self._cleanup()
            await self._release_input()

    async def _process_items(self, items: List[T]) -> List[U]:
        """Process the complete list of items.

        Args:
            items: Complete list of items from the input stream

        Returns:
            List of items to output

        Raises:
            NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError
