"""Source adapters turning byte-oriented readers into text streams."""

import asyncio
import codecs
from typing import AsyncIterable, AsyncIterator

from affluent.stream import Stream

DEFAULT_CHUNK_SIZE = 64 * 1024


async def _byte_chunks(
    reader: asyncio.StreamReader | AsyncIterable[bytes], chunk_size: int
) -> AsyncIterator[bytes]:
    if isinstance(reader, asyncio.StreamReader):
        while True:
            chunk = await reader.read(chunk_size)
            if not chunk:
                return
            yield chunk
    else:
        async for chunk in reader:
            yield chunk


async def _decode(
    reader: asyncio.StreamReader | AsyncIterable[bytes],
    encoding: str,
    chunk_size: int,
) -> AsyncIterator[str]:
    # Incremental decoding keeps multi-byte characters split across chunks intact
    decoder = codecs.getincrementaldecoder(encoding)()
    async for chunk in _byte_chunks(reader, chunk_size):
        text = decoder.decode(chunk)
        if text:
            yield text

    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def read_text(
    reader: asyncio.StreamReader | AsyncIterable[bytes],
    encoding: str = "utf-8",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Stream[str]:
    """Decode a byte stream into a stream of text chunks.

    Chunk boundaries follow the reader, so this is meant for consumers that
    do not care where the text is cut. Use ``read_lines`` for line-oriented
    input.

    Args:
        reader: ``asyncio.StreamReader`` or any async iterable of bytes
        encoding: Text encoding of the bytes
        chunk_size: Read size used with ``asyncio.StreamReader``

    Returns:
        A stream of decoded strings
    """
    return Stream(_decode(reader, encoding, chunk_size), name="text")


async def _lines(
    reader: asyncio.StreamReader | AsyncIterable[bytes],
    skip_empty_lines: bool,
    encoding: str,
) -> AsyncIterator[str]:
    pending = ""
    async for text in _decode(reader, encoding, DEFAULT_CHUNK_SIZE):
        pending += text
        *lines, pending = pending.split("\n")
        for line in lines:
            line = line.removesuffix("\r")
            if line or not skip_empty_lines:
                yield line

    # Final line without a trailing newline
    pending = pending.removesuffix("\r")
    if pending:
        yield pending


def read_lines(
    reader: asyncio.StreamReader | AsyncIterable[bytes],
    skip_empty_lines: bool = False,
    encoding: str = "utf-8",
) -> Stream[str]:
    """Read a byte stream line by line.

    Lines are split on ``\\n``; a ``\\r\\n`` pair counts as one line break.
    The terminator is not part of the yielded line.

    Args:
        reader: ``asyncio.StreamReader`` or any async iterable of bytes
        skip_empty_lines: Drop lines that are empty once the terminator is removed
        encoding: Text encoding of the bytes

    Returns:
        A stream with one string per line

    Example:
        >>> reader = asyncio.StreamReader()
        >>> reader.feed_data(b"a\\r\\n\\nb")
        >>> reader.feed_eof()
        >>> await read_lines(reader, skip_empty_lines=True).to_list()
        ['a', 'b']
    """
    return Stream(_lines(reader, skip_empty_lines, encoding), name="lines")
