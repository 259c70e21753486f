"""Tests for the terminal operations."""

import asyncio
import json

import pytest

import affluent as af
from affluent.errors import SinkWriteError
from affluent.tasks import OrderedWriter


class FakeWriter:
    """Duck-typed stand-in for asyncio.StreamWriter."""

    def __init__(self):
        self.buffer = b""
        self.drained = 0
        self.closed = False

    def write(self, data):
        self.buffer += data

    async def drain(self):
        self.drained += 1

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass


class TestResultAndEach:
    async def test_result_preserves_order(self):
        assert await af.Pipeline([3, 1, 2]).result() == [3, 1, 2]

    async def test_each_runs_in_order(self):
        seen = []
        await af.Pipeline([1, 2, 3]).each(seen.append)
        assert seen == [1, 2, 3]

    async def test_each_async_callback(self):
        seen = []

        async def record(x):
            await asyncio.sleep(0)
            seen.append(x)

        await af.Pipeline([1, 2]).each(record)
        assert seen == [1, 2]

    async def test_each_error_policy_continues(self):
        seen = []

        def record(x):
            if x == 2:
                raise ValueError("no twos")
            seen.append(x)

        await af.Pipeline([1, 2, 3]).each(record, af.skip_errors)
        assert seen == [1, 3]

    async def test_each_error_without_policy(self):
        def record(x):
            raise ValueError("no")

        with pytest.raises(ValueError):
            await af.Pipeline([1]).each(record)


class TestPipe:
    async def test_pipe_to_every_destination(self, recording_destination):
        log = []
        fast = recording_destination("fast", log)
        slow = recording_destination("slow", log, delay=0.01)

        await af.Pipeline([1, 2, 3]).pipe(fast, slow)

        assert fast.items == [1, 2, 3]
        assert slow.items == [1, 2, 3]
        assert log == [
            ("fast", 1),
            ("slow", 1),
            ("fast", 2),
            ("slow", 2),
            ("fast", 3),
            ("slow", 3),
            ("fast", "end"),
            ("slow", "end"),
        ]

    async def test_pipe_failed_write(self, recording_destination):
        healthy = recording_destination("healthy")
        failing = recording_destination("failing", fail_on=2)

        with pytest.raises(SinkWriteError) as exc_info:
            await af.Pipeline([1, 2, 3]).pipe(failing, healthy)

        error = exc_info.value
        assert error.item == 2
        assert error.destination is failing
        assert isinstance(error.original_error, ValueError)
        # The item was still offered to the other destination, nothing after it
        assert healthy.items == [1, 2]
        assert not healthy.ended
        assert not failing.ended

    async def test_pipe_requires_destination(self):
        with pytest.raises(af.StructuralError):
            await af.Pipeline([1]).pipe()

    async def test_pipe_sync_destination(self):
        items = []
        ended = []
        destination = af.CallbackDestination(items.append, lambda: ended.append(True))

        await af.Pipeline(["a", "b"]).pipe(destination)
        assert items == ["a", "b"]
        assert ended == [True]

    async def test_pipe_to_queue(self):
        queue = asyncio.Queue()
        await af.Pipeline([1, 2]).pipe(af.QueueDestination(queue))

        received = [queue.get_nowait() for _ in range(queue.qsize())]
        assert received == [1, 2, None]

    async def test_pipe_to_stream_writer(self):
        writer = FakeWriter()
        await af.Pipeline([{"a": 1}, "text"]).pipe(af.StreamWriterDestination(writer))

        assert writer.buffer == b'{"a": 1}\ntext\n'
        assert writer.drained == 2
        assert writer.closed

    async def test_pipe_destination_protocol(self, recording_destination):
        assert isinstance(recording_destination("x"), af.PipeDestination)
        assert not isinstance(object(), af.PipeDestination)


class TestPipeFirst:
    async def test_pipe_first_delivers_everything(self, recording_destination):
        first = recording_destination("first")
        background = recording_destination("background", delay=0.01)

        await af.Pipeline(range(5)).pipe_first(first, background)

        assert first.items == [0, 1, 2, 3, 4]
        assert background.items == [0, 1, 2, 3, 4]
        assert first.ended and background.ended

    async def test_pipe_first_does_not_wait_for_background(self, recording_destination):
        first = recording_destination("first")
        background = recording_destination("background", delay=0.05)
        progress = []

        async def watch():
            while len(first.items) < 5:
                await asyncio.sleep(0.005)
            progress.append(len(background.items))

        await asyncio.gather(
            af.Pipeline(range(5)).tap(lambda x: asyncio.sleep(0)).pipe_first(first, background),
            watch(),
        )

        assert progress[0] < 5
        assert background.items == [0, 1, 2, 3, 4]

    async def test_pipe_first_background_failure(self, recording_destination):
        first = recording_destination("first")
        failing = recording_destination("failing", fail_on=1)

        with pytest.raises(SinkWriteError) as exc_info:
            await af.Pipeline([0, 1, 2]).pipe_first(first, failing)

        assert exc_info.value.item == 1
        assert not first.ended

    async def test_pipe_first_first_destination_failure(self, recording_destination):
        first = recording_destination("first", fail_on=0)
        other = recording_destination("other")

        with pytest.raises(SinkWriteError) as exc_info:
            await af.Pipeline([0, 1]).pipe_first(first, other)

        assert exc_info.value.destination is first

    async def test_pipe_first_single_destination(self, recording_destination):
        only = recording_destination("only")
        await af.Pipeline([1]).pipe_first(only)
        assert only.items == [1]
        assert only.ended


class TestToStream:
    async def test_text_mode_serializes_json(self):
        readable = af.Pipeline([{"a": 1}, 2]).to_stream()

        assert await readable.read() == json.dumps({"a": 1})
        assert await readable.read() == "2"
        assert await readable.read() == ""
        assert await readable.read() == ""
        assert readable.closed

    async def test_object_mode(self):
        readable = af.Pipeline([{"a": 1}]).to_stream(object_mode=True)

        assert await readable.read() == {"a": 1}
        assert await readable.read() is None

    async def test_encoding_gives_bytes(self):
        readable = af.Pipeline(["x"]).to_stream(af.StreamOptions(encoding="utf-8"))

        assert await readable.read() == b'"x"'
        assert await readable.read() == b""

    async def test_options_and_keywords_are_exclusive(self):
        with pytest.raises(TypeError):
            af.Pipeline([1]).to_stream(af.StreamOptions(), object_mode=True)

    async def test_custom_serializer(self):
        readable = af.Pipeline([1, 2]).to_stream(serializer=str)
        assert [chunk async for chunk in readable] == ["1", "2"]

    async def test_each_read_pulls_one_item(self):
        seen = []
        readable = af.Pipeline(range(10)).tap(seen.append).to_stream(object_mode=True)

        assert seen == []
        assert await readable.read() == 0
        assert seen == [0]

    async def test_aclose_stops_upstream(self):
        closed = []

        async def numbers():
            try:
                for i in range(10):
                    yield i
            finally:
                closed.append(True)

        readable = af.Pipeline(numbers()).map(lambda x: x + 1).to_stream(object_mode=True)
        assert await readable.read() == 1

        await readable.aclose()
        assert closed == [True]
        assert await readable.read() is None


async def test_ordered_writer_keeps_order():
    written = []

    async def write(item):
        await asyncio.sleep(0.01 if item == 0 else 0)
        written.append(item)

    writer = OrderedWriter(write)
    async with asyncio.TaskGroup() as tg:
        tg.create_task(writer.run())
        for item in range(3):
            writer.put(item)
        writer.close()

    assert written == [0, 1, 2]
