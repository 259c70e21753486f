import asyncio

import affluent as af


async def test_flat_operation():
    """Test Flat operation"""
    result = await ([[1, 2], [3], 4, (5, 6), []] | af.Flat()).result()
    assert result == [1, 2, 3, 4, 5, 6]


async def test_flat_one_level_only():
    result = await af.Pipeline([[1, [2, 3]], [[4]]]).flat().result()
    assert result == [1, [2, 3], [4]]


async def test_flat_leaves_strings_alone():
    result = await af.Pipeline(["ab", ["c"]]).flat().result()
    assert result == ["ab", "c"]


async def test_flatmap_operation():
    """Test FlatMap operation"""
    result = await (range(3) | af.FlatMap(lambda x: [x] * x)).result()
    assert result == [1, 2, 2]


async def test_flatmap_async_function():
    async def neighbours(x):
        await asyncio.sleep(0)
        return [x - 1, x + 1]

    result = await af.Pipeline([10, 20]).flat_map(neighbours).result()
    assert result == [9, 11, 19, 21]


async def test_flatmap_skips_failures():
    def expand(x):
        if x < 0:
            raise ValueError("negative")
        return [x, x]

    result = await af.Pipeline([1, -1, 2]).flat_map(expand, af.skip_errors).result()
    assert result == [1, 1, 2, 2]


async def test_flatmap_chained_with_take():
    result = await af.Pipeline(range(100)).flat_map(lambda x: [x, x]).take(3).result()
    assert result == [0, 0, 1]


def test_flatmap_name():
    assert af.FlatMap(lambda x: [x]).name == "FlatMap"
