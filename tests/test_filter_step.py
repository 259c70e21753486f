import asyncio

import pytest

import affluent as af


async def test_filter_operation():
    """Test Filter operation"""
    pipeline = range(10) | af.Filter(lambda x: x % 2 == 0)
    result = await pipeline.result()
    assert result == [0, 2, 4, 6, 8]


async def test_filter_async_predicate():
    async def is_positive(x):
        await asyncio.sleep(0)
        return x > 0

    result = await af.Pipeline([-1, 2, -3, 4]).filter(is_positive).result()
    assert result == [2, 4]


async def test_filter_nothing_matches():
    assert await af.Pipeline([1, 3]).filter(lambda x: x % 2 == 0).result() == []


def check(x):
    if x == "bad":
        raise ValueError("cannot check")
    return x.startswith("a")


async def test_filter_error_skipped():
    result = await af.Pipeline(["ab", "bad", "ac", "b"]).filter(check, af.skip_errors).result()
    assert result == ["ab", "ac"]


async def test_filter_error_substituted_as_decision():
    result = await af.Pipeline(["ab", "bad", "b"]).filter(check, af.substitute_with(True)).result()
    assert result == ["ab", "bad"]


async def test_filter_error_without_policy():
    with pytest.raises(ValueError, match="cannot check"):
        await af.Pipeline(["ab", "bad"]).filter(check).result()
