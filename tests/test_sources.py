import asyncio

import affluent as af
from affluent.sources import read_lines, read_text


async def chunks(*parts):
    for part in parts:
        await asyncio.sleep(0)
        yield part


def make_reader(data):
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


async def test_line_reader():
    reader = make_reader(b"a\r\nb\n\nc")
    result = await af.Pipeline.from_line_reader(reader).result()
    assert result == ["a", "b", "", "c"]


async def test_line_reader_skip_empty_lines():
    reader = make_reader(b"a\n\n\r\nb\n")
    result = await af.Pipeline.from_line_reader(reader, skip_empty_lines=True).result()
    assert result == ["a", "b"]


async def test_trailing_newline_adds_no_line():
    assert await read_lines(make_reader(b"a\nb\n")).to_list() == ["a", "b"]


async def test_lines_across_chunks():
    source = chunks(b"caf", b"\xc3", b"\xa9\nna", b"ive")
    assert await read_lines(source).to_list() == ["café", "naive"]


async def test_byte_stream_decodes_split_characters():
    source = chunks(b"caf", b"\xc3", b"\xa9!")
    text = await af.Pipeline.from_byte_stream(source).join().result()
    assert text == ["café!"]


async def test_read_text_from_stream_reader():
    reader = make_reader("héllo".encode("utf-8"))
    assert "".join(await read_text(reader, chunk_size=2).to_list()) == "héllo"


async def test_line_reader_is_lazy():
    source = chunks(b"one\n", b"two\n", b"three\n")
    result = await af.Pipeline.from_line_reader(source).take(1).result()
    assert result == ["one"]


async def test_line_reader_other_encoding():
    reader = make_reader("ça\nva".encode("latin-1"))
    result = await af.Pipeline.from_line_reader(reader, encoding="latin-1").result()
    assert result == ["ça", "va"]
