"""Incremental gzip inflation for streamed response bodies."""

from __future__ import annotations

import asyncio
import io
import zlib
from typing import AsyncIterable

from harvester.errors import DecompressionError

# 16 + MAX_WBITS tells zlib to expect a gzip header and trailer.
_GZIP_WBITS = 16 + zlib.MAX_WBITS


class GzipInflater:
    """Feed compressed chunks in, get the inflated bytes for each back."""

    def __init__(self) -> None:
        self._decompressor = zlib.decompressobj(_GZIP_WBITS)

    def feed(self, chunk: bytes) -> bytes:
        try:
            return self._decompressor.decompress(chunk)
        except zlib.error as exc:
            raise DecompressionError(f"invalid gzip stream: {exc}") from exc

    def finish(self) -> bytes:
        """Flush the decompressor and check the stream really ended."""
        try:
            tail = self._decompressor.flush()
        except zlib.error as exc:
            raise DecompressionError(f"invalid gzip stream: {exc}") from exc
        if not self._decompressor.eof:
            raise DecompressionError("gzip stream ended prematurely")
        return tail


async def gunzip_stream(chunks: AsyncIterable[bytes]) -> bytes:
    """Inflate an async stream of gzip-compressed chunks into one buffer.

    Output is accumulated as raw bytes; callers decode to text only once the
    whole stream has been assembled.
    """
    inflater = GzipInflater()
    buffer = bytearray()
    async for chunk in chunks:
        buffer += inflater.feed(chunk)
    buffer += inflater.finish()
    return bytes(buffer)


class GzipStreamReader(io.RawIOBase):
    """Blocking file object over an async gzip byte stream.

    Meant to be read from a worker thread: each read pulls the next
    compressed chunk from *loop* and inflates it, so a consumer such as
    ``tarfile`` in stream mode sees the body as it arrives and at most one
    chunk is held in memory.  Errors from the source (including
    :class:`DecompressionError`) are raised from ``read``.
    """

    def __init__(self, chunks: AsyncIterable[bytes], loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._chunks = chunks.__aiter__()
        self._loop = loop
        self._inflater = GzipInflater()
        self._pending = b""
        self._exhausted = False

    def readable(self) -> bool:
        return True

    async def _next_chunk(self) -> bytes | None:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("read from closed GzipStreamReader")
        while not self._pending:
            if self._exhausted:
                return 0
            chunk = asyncio.run_coroutine_threadsafe(self._next_chunk(), self._loop).result()
            if chunk is None:
                self._exhausted = True
                self._pending = self._inflater.finish()
            else:
                self._pending = self._inflater.feed(chunk)

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size
