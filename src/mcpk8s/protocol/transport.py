"""MCP transports — framing layers over a byte stream.

Two framings are supported:

- ``HeaderFramedTransport`` — LSP-style ``Content-Length: N\\r\\n\\r\\n<body>``.
- ``NewlineTransport`` — one JSON document per line.

:func:`detect_transport` peeks at the head of the stream (without consuming
it) and picks the framing once per connection.  Every transport satisfies
the :class:`MessageTransport` protocol.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Protocol, runtime_checkable

from mcpk8s.protocol.errors import FramingError

HEADER_PREFIX = b"content-length:"
STDIO_READ_LIMIT = 16 * 1024 * 1024


class ByteReader(Protocol):
    """The subset of :class:`asyncio.StreamReader` the transports rely on."""

    async def read(self, n: int = -1) -> bytes: ...
    async def readline(self) -> bytes: ...
    async def readexactly(self, n: int) -> bytes: ...


class ByteWriter(Protocol):
    """The subset of :class:`asyncio.StreamWriter` the transports rely on."""

    def write(self, data: bytes) -> None: ...
    async def drain(self) -> None: ...


@runtime_checkable
class MessageTransport(Protocol):
    """Reads and writes discrete messages.

    ``read_message`` returns ``None`` at end of stream.
    """

    async def read_message(self) -> bytes | None: ...
    async def write_message(self, body: bytes) -> None: ...


class PeekableReader:
    """Wraps a :class:`ByteReader` with a push-back buffer for peeking."""

    def __init__(self, reader: ByteReader) -> None:
        self._reader = reader
        self._buffer = bytearray()

    @property
    def buffered(self) -> bytes:
        return bytes(self._buffer)

    async def fill(self, size: int) -> bool:
        """Read one more chunk (up to *size* buffered bytes). ``False`` on EOF."""
        if len(self._buffer) >= size:
            return True
        chunk = await self._reader.read(size - len(self._buffer))
        if not chunk:
            return False
        self._buffer.extend(chunk)
        return True

    async def read(self, n: int = -1) -> bytes:
        if self._buffer:
            if n < 0 or n >= len(self._buffer):
                data = bytes(self._buffer)
                self._buffer.clear()
                return data
            data = bytes(self._buffer[:n])
            del self._buffer[:n]
            return data
        return await self._reader.read(n)

    async def readline(self) -> bytes:
        idx = self._buffer.find(b"\n")
        if idx >= 0:
            line = bytes(self._buffer[: idx + 1])
            del self._buffer[: idx + 1]
            return line
        head = bytes(self._buffer)
        self._buffer.clear()
        return head + await self._reader.readline()

    async def readexactly(self, n: int) -> bytes:
        if len(self._buffer) >= n:
            data = bytes(self._buffer[:n])
            del self._buffer[:n]
            return data
        head = bytes(self._buffer)
        self._buffer.clear()
        try:
            return head + await self._reader.readexactly(n - len(head))
        except asyncio.IncompleteReadError as exc:
            raise asyncio.IncompleteReadError(head + exc.partial, n) from None


class HeaderFramedTransport:
    """``Content-Length`` framed messages, as used by LSP and MCP stdio clients."""

    framing = "header"

    def __init__(self, reader: ByteReader, writer: ByteWriter) -> None:
        self._reader = reader
        self._writer = writer

    async def read_message(self) -> bytes | None:
        content_length = 0
        while True:
            raw = await _readline(self._reader)
            if not raw.endswith(b"\n"):
                # EOF (possibly mid-header)
                return None
            line = raw.rstrip(b"\r\n")
            if not line:
                break
            if line.lower().startswith(HEADER_PREFIX):
                value = line.split(b":", 1)[1].strip()
                try:
                    content_length = int(value)
                except ValueError:
                    raise FramingError(f"invalid content-length: {value!r}") from None
        if content_length <= 0:
            return None
        try:
            return await self._reader.readexactly(content_length)
        except asyncio.IncompleteReadError:
            return None

    async def write_message(self, body: bytes) -> None:
        self._writer.write(b"Content-Length: %d\r\n\r\n" % len(body) + body)
        await self._writer.drain()


class NewlineTransport:
    """Newline-delimited JSON, convenient for manual testing from a shell."""

    framing = "ndjson"

    def __init__(self, reader: ByteReader, writer: ByteWriter) -> None:
        self._reader = reader
        self._writer = writer

    async def read_message(self) -> bytes | None:
        while True:
            line = await _readline(self._reader)
            if not line:
                return None
            line = line.strip()
            if line:
                return line

    async def write_message(self, body: bytes) -> None:
        self._writer.write(body + b"\n")
        await self._writer.drain()


async def _readline(reader: ByteReader) -> bytes:
    try:
        return await reader.readline()
    except (ValueError, asyncio.LimitOverrunError) as exc:
        raise FramingError(f"line exceeds read limit ({exc})") from None


async def detect_transport(reader: ByteReader, writer: ByteWriter) -> MessageTransport:
    """Peek at the stream head and return the matching transport.

    Peeking stops as soon as the decision is certain: once the prefix stops
    matching ``content-length:``, a newline shows up, or the stream ends.
    """
    peekable = PeekableReader(reader)
    size = len(HEADER_PREFIX)
    while True:
        head = peekable.buffered
        if len(head) >= size or b"\n" in head:
            break
        if not HEADER_PREFIX.startswith(head.lower()):
            break
        if not await peekable.fill(size):
            break
    if peekable.buffered[:size].lower() == HEADER_PREFIX:
        return HeaderFramedTransport(peekable, writer)
    return NewlineTransport(peekable, writer)


async def open_stdio() -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Wrap the process stdin/stdout as asyncio streams."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STDIO_READ_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    w_transport, w_protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout
    )
    writer = asyncio.StreamWriter(w_transport, w_protocol, reader, loop)
    return reader, writer
