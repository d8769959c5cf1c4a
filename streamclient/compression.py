"""Streaming request compression and response decompression.

Compression never materialises the payload: a producer task drains the
source iterator through an incremental compressor into a bounded queue, and
the request body iterates the other end of that queue (:class:`CompressionPipe`).
A producer failure is delivered to the consumer as an exception on its next
read, never as a silently truncated body.

Custom algorithms plug in through a pair of factories on the request options:
``custom_compressor()`` returns an object with ``compress(bytes)`` and
``flush()`` (e.g. ``bz2.BZ2Compressor``), ``custom_decompressor()`` returns
an object with ``decompress(bytes)`` and optionally ``flush()``.
"""

import asyncio
import zlib
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import brotli

from streamclient.config.constants import COMPRESSION_PIPE_DEPTH
from streamclient.core.errors import (
    CompressionError,
    DecompressionError,
    StreamClientError,
    UnsupportedCompressionError,
)
from streamclient.core.logging import get_logger


if TYPE_CHECKING:
    from streamclient.options import RequestOptions


logger = get_logger(__name__)

DEFAULT_CUSTOM_ENCODING = "application/octet-stream"


class CompressionType(str, Enum):
    """Request body compression algorithms."""

    NONE = ""
    GZIP = "gzip"
    DEFLATE = "deflate"
    BROTLI = "br"
    CUSTOM = "custom"


@runtime_checkable
class StreamCompressor(Protocol):
    """Incremental compressor (``zlib.compressobj`` shape)."""

    def compress(self, data: bytes) -> bytes: ...

    def flush(self) -> bytes: ...


@runtime_checkable
class StreamDecompressor(Protocol):
    """Incremental decompressor (``zlib.decompressobj`` shape)."""

    def decompress(self, data: bytes) -> bytes: ...


CompressorFactory = Callable[[], StreamCompressor]
DecompressorFactory = Callable[[], StreamDecompressor]


class _BrotliCompressor:
    def __init__(self) -> None:
        self._compressor = brotli.Compressor()

    def compress(self, data: bytes) -> bytes:
        return self._compressor.process(data)  # type: ignore[no-any-return]

    def flush(self) -> bytes:
        return self._compressor.finish()  # type: ignore[no-any-return]


class _BrotliDecompressor:
    def __init__(self) -> None:
        self._decompressor = brotli.Decompressor()

    def decompress(self, data: bytes) -> bytes:
        return self._decompressor.process(data)  # type: ignore[no-any-return]


class _DeflateDecompressor:
    """zlib-wrapped deflate with a fallback to raw deflate streams."""

    def __init__(self) -> None:
        self._first = True
        self._decompressor = zlib.decompressobj()

    def decompress(self, data: bytes) -> bytes:
        was_first = self._first
        self._first = False
        try:
            return self._decompressor.decompress(data)
        except zlib.error:
            if was_first:
                self._decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
                return self._decompressor.decompress(data)
            raise

    def flush(self) -> bytes:
        return self._decompressor.flush()


def content_encoding_for(options: "RequestOptions") -> str:
    """Content-Encoding header value for the configured compression."""
    if options.compression is CompressionType.CUSTOM:
        return options.custom_compression_type or DEFAULT_CUSTOM_ENCODING
    return options.compression.value


def get_compressor(options: "RequestOptions") -> StreamCompressor | None:
    """Build the compressor selected by ``options.compression``.

    Returns ``None`` for no compression.

    Raises:
        UnsupportedCompressionError: if ``custom`` is selected without a hook.
    """
    compression = options.compression
    if compression is CompressionType.NONE:
        return None
    if compression is CompressionType.GZIP:
        return zlib.compressobj(wbits=zlib.MAX_WBITS | 16)
    if compression is CompressionType.DEFLATE:
        return zlib.compressobj()
    if compression is CompressionType.BROTLI:
        return _BrotliCompressor()
    if compression is CompressionType.CUSTOM:
        if options.custom_compressor is None:
            raise UnsupportedCompressionError(
                CompressionType.CUSTOM.value,
                "custom compression specified but no compressor provided",
            )
        return options.custom_compressor()
    raise UnsupportedCompressionError(str(compression))


def get_decompressor(
    encoding: str, options: "RequestOptions"
) -> StreamDecompressor | None:
    """Build the decompressor for a response ``Content-Encoding``.

    Returns ``None`` when the body is not encoded. Unknown encodings go to
    the custom decompressor hook when one is configured.

    Raises:
        UnsupportedCompressionError: for an unknown encoding without a hook.
    """
    encoding = encoding.strip().lower()
    if encoding in ("", "identity"):
        return None
    if encoding in ("gzip", "x-gzip"):
        return zlib.decompressobj(zlib.MAX_WBITS | 16)
    if encoding == CompressionType.DEFLATE.value:
        return _DeflateDecompressor()
    if encoding == CompressionType.BROTLI.value:
        return _BrotliDecompressor()
    if options.custom_decompressor is not None:
        logger.debug("custom_decompressor_selected", encoding=encoding)
        return options.custom_decompressor()
    raise UnsupportedCompressionError(encoding)


_EOF = object()


class _PipeFailure:
    def __init__(self, error: BaseException) -> None:
        self.error = error


class CompressionPipe:
    """Bounded in-process pipe from a compressor producer to the request body.

    Iterating the pipe starts the producer task; closing it (or exhausting
    it) always tears the task down.
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        compressor: StreamCompressor,
        *,
        depth: int = COMPRESSION_PIPE_DEPTH,
    ) -> None:
        self._source = source
        self._compressor = compressor
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=depth)
        self._task: asyncio.Task[None] | None = None
        self.bytes_in = 0
        self.bytes_out = 0

    async def _produce(self) -> None:
        try:
            async for chunk in self._source:
                self.bytes_in += len(chunk)
                data = self._compressor.compress(chunk)
                if data:
                    await self._queue.put(data)
            tail = self._compressor.flush()
            if tail:
                await self._queue.put(tail)
        except Exception as e:
            await self._queue.put(_PipeFailure(e))
            return
        await self._queue.put(_EOF)

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        self._task = asyncio.create_task(self._produce())
        try:
            while True:
                item = await self._queue.get()
                if item is _EOF:
                    break
                if isinstance(item, _PipeFailure):
                    if isinstance(item.error, StreamClientError):
                        raise item.error
                    raise CompressionError(
                        f"compression stream failed: {item.error}"
                    ) from item.error
                assert isinstance(item, bytes)
                self.bytes_out += len(item)
                yield item
        finally:
            await self.aclose()

        logger.debug(
            "compression_pipe_drained",
            bytes_in=self.bytes_in,
            bytes_out=self.bytes_out,
        )

    async def aclose(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


async def decompress_stream(
    source: AsyncIterator[bytes],
    decompressor: StreamDecompressor,
    encoding: str,
) -> AsyncIterator[bytes]:
    """Decode ``source`` chunk by chunk."""
    try:
        async for chunk in source:
            data = decompressor.decompress(chunk)
            if data:
                yield data
        flush = getattr(decompressor, "flush", None)
        if flush is not None:
            tail = flush()
            if tail:
                yield tail
    except (zlib.error, brotli.error, OSError, ValueError, EOFError) as e:
        raise DecompressionError(
            f"failed to decode {encoding} response body: {e}", encoding=encoding
        ) from e
