"""Payload descriptors.

A request payload is described by one of a closed set of
:class:`PayloadSource` variants. Each variant knows its size (or
``UNKNOWN_SIZE``), produces the body as an async chunk iterator, and can be
*rehydrated* into a fresh descriptor when a redirect requires the body to be
sent again. Live streams are never carried across a redirect hop; files are
reopened by name and seekable streams are rewound to where they started.
"""

import asyncio
import inspect
import io
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

import aiofiles

from streamclient.config.constants import DEFAULT_UPLOAD_BUFFER_SIZE, UNKNOWN_SIZE
from streamclient.core.errors import (
    FileAccessError,
    PayloadReplayError,
    TransferError,
    UnsupportedPayloadError,
)
from streamclient.core.logging import get_logger


logger = get_logger(__name__)


def _as_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


def probe_size(stream: Any) -> tuple[int, int | None]:
    """Return ``(remaining_bytes, start_position)`` of a seekable stream.

    The stream position is restored exactly. Non-seekable streams report
    ``(UNKNOWN_SIZE, None)``.
    """
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and not seekable():
        return UNKNOWN_SIZE, None
    if not (hasattr(stream, "seek") and hasattr(stream, "tell")):
        return UNKNOWN_SIZE, None

    try:
        start = stream.tell()
        end = stream.seek(0, io.SEEK_END)
    except (OSError, ValueError):
        return UNKNOWN_SIZE, None

    try:
        stream.seek(start, io.SEEK_SET)
    except (OSError, ValueError) as e:
        raise TransferError(
            f"failed to restore stream position after size probe: {e}"
        ) from e

    return max(end - start, 0), start


class PayloadSource(ABC):
    """Re-creatable description of a request body."""

    reader: ClassVar[str]

    @property
    @abstractmethod
    def size(self) -> int:
        """Body size in bytes, or ``UNKNOWN_SIZE``."""

    @abstractmethod
    def chunks(self, chunk_size: int = DEFAULT_UPLOAD_BUFFER_SIZE) -> AsyncIterator[bytes]:
        """Iterate the body in chunks of at most ``chunk_size`` bytes."""

    @abstractmethod
    def rehydrate(self) -> "PayloadSource":
        """Return a descriptor that yields the full body again."""

    @property
    def is_empty(self) -> bool:
        return False

    @classmethod
    def from_value(cls, value: Any) -> "PayloadSource":
        """Describe an arbitrary payload value.

        Supported: ``None``, bytes-like, ``str``, open file objects, binary
        readers (sync or async ``read``) and async iterables of bytes.

        Raises:
            UnsupportedPayloadError: for any other type.
        """
        source: PayloadSource
        if value is None:
            source = EmptyPayload()
        elif isinstance(value, PayloadSource):
            source = value
        elif isinstance(value, bytes | bytearray | memoryview):
            source = BytesPayload(bytes(value))
        elif isinstance(value, str):
            source = TextPayload(value)
        elif _is_named_file(value):
            source = FilePayload.from_handle(value)
        elif hasattr(value, "read") or isinstance(value, AsyncIterable):
            source = StreamPayload.from_stream(value)
        else:
            raise UnsupportedPayloadError(value)

        logger.debug("payload_reader_selected", reader=source.reader, size=source.size)
        return source


def _is_named_file(value: Any) -> bool:
    name = getattr(value, "name", None)
    return (
        hasattr(value, "read")
        and not inspect.iscoroutinefunction(value.read)
        and isinstance(name, str)
        and os.path.isfile(name)
    )


@dataclass
class EmptyPayload(PayloadSource):
    """No request body."""

    reader: ClassVar[str] = "none"

    @property
    def size(self) -> int:
        return UNKNOWN_SIZE

    @property
    def is_empty(self) -> bool:
        return True

    async def chunks(self, chunk_size: int = DEFAULT_UPLOAD_BUFFER_SIZE) -> AsyncIterator[bytes]:
        return
        yield  # pragma: no cover

    def rehydrate(self) -> "EmptyPayload":
        return self


@dataclass
class BytesPayload(PayloadSource):
    """In-memory byte buffer."""

    data: bytes
    reader: ClassVar[str] = "bytes"

    @property
    def size(self) -> int:
        return len(self.data)

    async def chunks(self, chunk_size: int = DEFAULT_UPLOAD_BUFFER_SIZE) -> AsyncIterator[bytes]:
        view = memoryview(self.data)
        for offset in range(0, len(view), chunk_size):
            yield bytes(view[offset : offset + chunk_size])

    def rehydrate(self) -> "BytesPayload":
        return self


class TextPayload(BytesPayload):
    """Text, sent as UTF-8."""

    reader: ClassVar[str] = "text"

    def __init__(self, text: str) -> None:
        super().__init__(text.encode("utf-8"))
        self.text = text

    def rehydrate(self) -> "TextPayload":
        return self


@dataclass
class FilePayload(PayloadSource):
    """File on disk, optionally already opened by the caller.

    The first transfer reads from ``handle`` when one was given. Any replay
    reopens ``path``.
    """

    path: str
    handle: Any = None
    offset: int = 0
    _size: int = field(default=UNKNOWN_SIZE, repr=False)
    reader: ClassVar[str] = "file"

    def __post_init__(self) -> None:
        if self.handle is None:
            try:
                self._size = max(os.stat(self.path).st_size - self.offset, 0)
            except FileNotFoundError as e:
                raise FileAccessError(f"file does not exist: {self.path}", self.path) from e
            except OSError as e:
                raise FileAccessError(f"failed to access file: {e}", self.path) from e
        else:
            self._size, start = probe_size(self.handle)
            self.offset = start or 0

    @classmethod
    def from_handle(cls, handle: Any) -> "FilePayload":
        return cls(path=handle.name, handle=handle)

    @property
    def size(self) -> int:
        return self._size

    async def chunks(self, chunk_size: int = DEFAULT_UPLOAD_BUFFER_SIZE) -> AsyncIterator[bytes]:
        if self.handle is not None:
            handle, self.handle = self.handle, None
            while chunk := await asyncio.to_thread(handle.read, chunk_size):
                yield _as_bytes(chunk)
            return

        logger.debug("file_reopened", path=self.path, size=self._size)
        try:
            f = await aiofiles.open(self.path, "rb")
        except OSError as e:
            raise FileAccessError(f"failed to open file: {e}", self.path) from e
        async with f:
            if self.offset:
                await f.seek(self.offset)
            while chunk := await f.read(chunk_size):
                yield chunk

    def rehydrate(self) -> "FilePayload":
        return FilePayload(path=self.path, offset=self.offset)


@dataclass
class StreamPayload(PayloadSource):
    """Generic byte stream: sync reader, async reader or async iterable."""

    stream: Any
    start: int | None = None
    _size: int = UNKNOWN_SIZE
    _consumed: bool = field(default=False, repr=False)
    reader: ClassVar[str] = "stream"

    @classmethod
    def from_stream(cls, stream: Any) -> "StreamPayload":
        size, start = UNKNOWN_SIZE, None
        if hasattr(stream, "read") and not inspect.iscoroutinefunction(stream.read):
            size, start = probe_size(stream)
        return cls(stream=stream, start=start, _size=size)

    @property
    def size(self) -> int:
        return self._size

    async def chunks(self, chunk_size: int = DEFAULT_UPLOAD_BUFFER_SIZE) -> AsyncIterator[bytes]:
        self._consumed = True
        stream = self.stream
        read = getattr(stream, "read", None)
        if read is not None and inspect.iscoroutinefunction(read):
            while chunk := await read(chunk_size):
                yield _as_bytes(chunk)
        elif read is not None:
            while chunk := await asyncio.to_thread(read, chunk_size):
                yield _as_bytes(chunk)
        else:
            async for chunk in stream:
                if chunk:
                    yield _as_bytes(chunk)

    def rehydrate(self) -> "StreamPayload":
        if not self._consumed:
            return self
        if self.start is None:
            raise PayloadReplayError(type(self.stream).__name__)
        try:
            self.stream.seek(self.start, io.SEEK_SET)
        except (OSError, ValueError) as e:
            raise PayloadReplayError(type(self.stream).__name__) from e
        return StreamPayload(stream=self.stream, start=self.start, _size=self._size)
