"""Share one single-pass stream between several independent consumers.

A forked stream is pulled from its upstream at most once per item. Every
branch keeps its own cursor into a shared buffer, so each branch sees the
complete sequence, in order, exactly once::

    factory = fork(Stream.from_iterable(range(5)))
    evens = Pipeline(factory.fork()).filter(lambda x: x % 2 == 0)
    odds = Pipeline(factory.fork()).filter(lambda x: x % 2 == 1)
    await asyncio.gather(evens.result(), odds.result())

Create every branch before any of them starts consuming: a branch created
later only sees the items pulled after it joined.
"""

import asyncio
import logging
import warnings
from collections import deque
from typing import Deque, Generic, Optional, Set, TypeVar

from affluent.stream import Stream

T = TypeVar("T")

logger = logging.getLogger(__name__)


class _Slot(Generic[T]):
    """Buffered item with the number of branches that still have to read it."""

    __slots__ = ("item", "pending")

    def __init__(self, item: T, pending: int):
        self.item = item
        self.pending = pending


class ForkHandle(Generic[T]):
    """One branch of a forked stream.

    The handle is an async iterator over the shared sequence. Its cursor is an
    absolute position in the upstream sequence and never passes the write
    frontier of the shared buffer.
    """

    def __init__(self, state: "ForkState[T]", cursor: int, index: int):
        self._state = state
        self.cursor = cursor
        self.index = index
        self.closed = False

    def __repr__(self):
        return f"ForkHandle(index={self.index}, cursor={self.cursor})"

    def __aiter__(self) -> "ForkHandle[T]":
        return self

    async def __anext__(self) -> T:
        if self.closed:
            raise StopAsyncIteration

        try:
            return await self._state.read(self)
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self):
        """Leave the fork, releasing the items this branch did not read."""
        if self.closed:
            return
        self.closed = True
        await self._state.release(self)


class ForkState(Generic[T]):
    """State shared by every branch of one forked stream.

    At most one upstream pull is in flight. It runs in its own task, so a
    branch cancelled while waiting for it does not interrupt the pull: the
    item still lands in the buffer for the other branches.

    Attributes:
        upstream: The stream being shared
        buffer: Items pulled but not yet read by every live branch
        offset: Absolute position of ``buffer[0]``
        handles: Live branches
        exhausted: True once the upstream signalled its end (or was closed)
        error: Exception raised by the upstream, replayed to every branch
    """

    def __init__(self, upstream: Stream[T]):
        self.upstream = upstream.claim()
        self.buffer: Deque[_Slot[T]] = deque()
        self.offset = 0
        self.handles: Set[ForkHandle[T]] = set()
        self.exhausted = False
        self.error: Optional[Exception] = None
        self.started = False
        self.created = 0
        self._inflight: Optional[asyncio.Task[None]] = None

    @property
    def frontier(self) -> int:
        """Absolute position the next upstream item will be written to."""
        return self.offset + len(self.buffer)

    def register(self) -> ForkHandle[T]:
        """Create a new live branch positioned at the write frontier."""
        if self.started:
            message = (
                f"Fork branch created after {self.upstream!r} started being consumed; "
                f"it will only see items from position {self.frontier} onwards"
            )
            warnings.warn(message, RuntimeWarning, stacklevel=3)
            logger.warning(message)

        handle = ForkHandle(self, self.frontier, self.created)
        self.created += 1
        self.handles.add(handle)
        logger.debug("Fork of %r: branch %d created", self.upstream, handle.index)
        return handle

    async def read(self, handle: ForkHandle[T]) -> T:
        """Serve the item at the handle's cursor and advance it.

        Raises:
            StopAsyncIteration: Once the upstream is exhausted
            Exception: The upstream error, for every branch reaching it
        """
        while handle.cursor == self.frontier:
            if self.error is not None:
                raise self.error
            if self.exhausted:
                raise StopAsyncIteration

            if self._inflight is None:
                self.started = True
                self._inflight = asyncio.ensure_future(self._pull())
            # Cancelling this branch must not cancel the pull shared by all
            await asyncio.shield(self._inflight)

        slot = self.buffer[handle.cursor - self.offset]
        handle.cursor += 1
        # No suspension point from here to the return: the decrement and the
        # eviction cannot interleave with another branch
        slot.pending -= 1
        self._evict()
        return slot.item

    async def _pull(self):
        """Pull one upstream item into the buffer, recording end or error."""
        try:
            item = await self.upstream.pull()
        except StopAsyncIteration:
            self.exhausted = True
            logger.debug("Fork of %r: upstream exhausted at %d", self.upstream, self.frontier)
        except Exception as e:
            self.error = e
        else:
            self.buffer.append(_Slot(item, len(self.handles)))
            self._evict()
        finally:
            self._inflight = None

        if not self.handles and not self.exhausted:
            # Every branch left while the pull was in flight
            await self._close_upstream()

    async def release(self, handle: ForkHandle[T]):
        """Drop a branch and its claims on buffered items.

        Closes the upstream once no branch is left.
        """
        if handle not in self.handles:
            return

        self.handles.discard(handle)
        for position in range(max(handle.cursor, self.offset), self.frontier):
            self.buffer[position - self.offset].pending -= 1
        self._evict()
        logger.debug("Fork of %r: branch %d released", self.upstream, handle.index)

        # An in-flight pull closes the upstream itself once it completes
        if not self.handles and self.started and not self.exhausted and self._inflight is None:
            await self._close_upstream()

    async def _close_upstream(self):
        self.exhausted = True
        await self.upstream.aclose()

    def _evict(self):
        while self.buffer and self.buffer[0].pending <= 0:
            self.buffer.popleft()
            self.offset += 1


class ForkFactory(Generic[T]):
    """Produces independent branches over one shared upstream stream.

    Example:
        >>> factory = fork(Stream.from_iterable([1, 2, 3]))
        >>> left, right = factory.fork(), factory.fork()
        >>> await left.to_list(), await right.to_list()
        ([1, 2, 3], [1, 2, 3])
    """

    def __init__(self, upstream: Stream[T]):
        self.state = ForkState(upstream)

    def fork(self) -> Stream[T]:
        """Create a new branch.

        Returns:
            A stream yielding the shared sequence from the current frontier
        """
        handle = self.state.register()
        return Stream(handle, name=f"fork[{handle.index}] of {self.state.upstream.name}")

    @property
    def branches(self) -> int:
        """Number of live branches."""
        return len(self.state.handles)


def fork(stream: Stream[T]) -> ForkFactory[T]:
    """Wrap ``stream`` so that it can be consumed by several branches.

    The stream is claimed by the fork: pull it only through branches.
    """
    return ForkFactory(stream)
