import asyncio

import pytest

import affluent as af


async def test_basic_chaining():
    result = await af.Pipeline(range(10)).map(lambda x: x * 2).filter(lambda x: x > 5).take(3).result()
    assert result == [6, 8, 10]


async def test_chaining_returns_fresh_pipeline():
    source = af.Pipeline([1, 2])
    doubled = source.map(lambda x: x * 2)

    assert doubled is not source
    assert await doubled.result() == [2, 4]


async def test_chained_pipeline_cannot_be_reused():
    source = af.Pipeline([1, 2])
    source.map(str)

    with pytest.raises(af.StructuralError):
        source.map(repr)
    with pytest.raises(af.StructuralError):
        await source.result()


async def test_result_twice_raises():
    pipeline = af.Pipeline([1])
    assert await pipeline.result() == [1]
    with pytest.raises(af.StructuralError):
        await pipeline.result()


async def test_pipe_operator_with_steps():
    pipeline = af.Pipeline(range(5)) | af.Map(lambda x: x + 1) | af.Filter(lambda x: x % 2 == 0)
    assert await pipeline.result() == [2, 4]


async def test_data_pipe_chain():
    clean = af.Map(str.strip) | af.Filter(bool) | af.Unique()
    assert isinstance(clean, af.Chain)
    assert clean.name == "Map | Filter | Unique"

    assert await ([" a", "", "a ", "b"] | clean).result() == ["a", "b"]
    assert await (["c "] | clean).result() == ["c"]


async def test_then_rejects_non_steps():
    with pytest.raises(TypeError):
        af.Pipeline([1]).then(lambda x: x)
    with pytest.raises(TypeError):
        af.Pipeline([1]) | 5


async def test_apply_fragment():
    def clean(pipeline):
        return pipeline.map(str.strip).filter(bool)

    result = await af.Pipeline([" a", " ", "b "]).apply(clean).result()
    assert result == ["a", "b"]


async def test_apply_returns_anything():
    count = af.Pipeline([1, 2, 3]).apply(lambda p: p.reduce(lambda acc, _: acc + 1, 0))
    assert await count.result() == [3]


async def test_sources():
    async def deferred():
        return "later"

    async def agen():
        yield 1
        yield 2

    assert await af.Pipeline.from_iterable((1, 2)).result() == [1, 2]
    assert await af.Pipeline.from_value("abc").result() == ["abc"]
    assert await af.Pipeline.from_awaitable(deferred()).result() == ["later"]
    assert await af.Pipeline.from_async_iterable(agen()).result() == [1, 2]
    assert await af.Pipeline(agen()).result() == [1, 2]


async def test_from_pipeline_continues_stream():
    first = af.Pipeline(range(3)).map(lambda x: x + 1)
    second = af.Pipeline.from_pipeline(first).map(lambda x: x * 10)

    assert await second.result() == [10, 20, 30]
    with pytest.raises(af.StructuralError):
        await first.result()


@pytest.mark.parametrize("source", [5, "text", None])
def test_invalid_source(source):
    with pytest.raises(TypeError):
        af.Pipeline(source)


async def test_stream_yields_as_produced():
    seen = []
    pipeline = af.Pipeline(range(100)).tap(seen.append)

    async for item in pipeline.stream():
        if item == 2:
            break

    assert seen == [0, 1, 2]


async def test_async_for_over_pipeline():
    items = [x async for x in af.Pipeline([1, 2]).map(str)]
    assert items == ["1", "2"]


async def test_to_iterator_hands_over_stream():
    pipeline = af.Pipeline([1, 2])
    iterator = pipeline.to_iterator()

    assert await iterator.pull() == 1
    with pytest.raises(af.StructuralError):
        await pipeline.result()
    assert await af.Pipeline(iterator).result() == [2]


async def test_pipeline_function():
    assert await af.pipeline([1]).map(str).result() == ["1"]


async def test_nothing_runs_without_terminal():
    seen = []
    af.Pipeline([1, 2]).tap(seen.append).map(str)
    await asyncio.sleep(0)
    assert seen == []


async def test_word_count_example():
    lines = ["the cat", "the dog", "", "a cat"]
    counts = await (
        af.Pipeline(lines)
        .filter(bool)
        .split(" ")
        .flat()
        .reduce(lambda acc, word: {**acc, word: acc.get(word, 0) + 1}, {})
        .result()
    )
    assert counts == [{"the": 2, "cat": 2, "dog": 1, "a": 1}]
