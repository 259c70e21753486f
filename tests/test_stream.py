import pytest

import affluent as af
from affluent.stream import Stream


async def test_pull_in_order_then_stop():
    stream = Stream.from_iterable([1, 2])
    assert await stream.pull() == 1
    assert await stream.pull() == 2
    with pytest.raises(StopAsyncIteration):
        await stream.pull()


async def test_exhaustion_is_idempotent(counting_source):
    """Pulling an exhausted stream does not touch the source again."""
    source = counting_source([1])
    stream = Stream(source)

    assert await stream.pull() == 1
    for _ in range(3):
        with pytest.raises(StopAsyncIteration):
            await stream.pull()

    assert source.calls == 2
    assert stream.consumed


async def test_from_iterable_is_lazy():
    produced = []

    def numbers():
        for i in range(3):
            produced.append(i)
            yield i

    stream = Stream.from_iterable(numbers())
    assert produced == []
    assert await stream.pull() == 0
    assert produced == [0]


async def test_from_awaitable_awaits_on_first_pull():
    calls = []

    async def compute():
        calls.append(1)
        return 42

    stream = Stream.from_awaitable(compute())
    assert calls == []
    assert await stream.to_list() == [42]
    assert calls == [1]


async def test_from_value():
    assert await Stream.from_value([1, 2]).to_list() == [[1, 2]]


async def test_claim_twice_raises():
    stream = Stream.from_iterable([1])
    stream.claim()
    with pytest.raises(af.StructuralError):
        stream.claim()


async def test_to_list_twice_raises():
    stream = Stream.from_iterable([1])
    assert await stream.to_list() == [1]
    with pytest.raises(af.StructuralError):
        await stream.to_list()


@pytest.mark.parametrize("data", ["abc", b"abc", 5, None])
def test_of_rejects_non_iterables(data):
    with pytest.raises(TypeError):
        Stream.of(data)


def test_requires_async_iterable():
    with pytest.raises(TypeError):
        Stream([1, 2, 3])


async def test_aclose_closes_generator():
    closed = []

    async def numbers():
        try:
            i = 0
            while True:
                yield i
                i += 1
        finally:
            closed.append(True)

    stream = Stream(numbers())
    assert await stream.pull() == 0
    await stream.aclose()

    assert closed == [True]
    with pytest.raises(StopAsyncIteration):
        await stream.pull()
