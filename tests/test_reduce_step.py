import asyncio

import pytest

import affluent as af


async def test_reduce_operation():
    """Test Reduce operation"""
    result = await (range(5) | af.Reduce(lambda acc, x: acc + x, 0)).result()
    assert result == [10]


async def test_reduce_without_initial_uses_first_item():
    result = await af.Pipeline([3, 1, 4, 1, 5]).reduce(max).result()
    assert result == [5]


async def test_reduce_keeps_order():
    result = await af.Pipeline(["a", "b", "c"]).reduce(lambda acc, x: acc + x, "").result()
    assert result == ["abc"]


async def test_reduce_empty_with_initial():
    assert await af.Pipeline([]).reduce(lambda acc, x: acc + x, 100).result() == [100]


async def test_reduce_none_initial_is_a_value():
    result = await af.Pipeline([]).reduce(lambda acc, x: x, None).result()
    assert result == [None]


async def test_reduce_empty_without_initial():
    with pytest.raises(af.StructuralError):
        await af.Pipeline([]).reduce(lambda acc, x: acc + x).result()


async def test_reduce_async_reducer():
    async def add(acc, x):
        await asyncio.sleep(0)
        return acc + x

    assert await af.Pipeline([1, 2, 3]).reduce(add, 0).result() == [6]


async def test_reduce_skip_keeps_accumulator():
    result = await af.Pipeline([1, 0, 2]).reduce(
        lambda acc, x: acc + 10 // x, 0, af.skip_errors
    ).result()
    assert result == [15]


async def test_reduce_substitute_replaces_accumulator():
    result = await af.Pipeline([1, 0, 2]).reduce(
        lambda acc, x: acc + 10 // x, 0, af.substitute_with(100)
    ).result()
    assert result == [105]


def test_reduce_requires_callable():
    with pytest.raises(TypeError):
        af.Reduce("not a function")
