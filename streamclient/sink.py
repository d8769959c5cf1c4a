"""Response writer sinks: in-memory buffer or file on disk."""

import io
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import aiofiles
import aiofiles.os

from streamclient.core.errors import (
    InvalidWriterError,
    MissingFilePathError,
    SinkError,
    UnexpectedFilePathError,
)
from streamclient.core.logging import get_logger


logger = get_logger(__name__)


class ResponseWriterType(str, Enum):
    """Destination of the response body."""

    BUFFER = "buffer"
    FILE = "file"


@runtime_checkable
class ResponseSink(Protocol):
    """Destination for response body bytes."""

    async def write(self, data: bytes) -> int: ...

    async def close(self) -> None: ...


class BufferSink:
    """Collects the response body in memory."""

    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self.closed = False

    async def write(self, data: bytes) -> int:
        return self._buffer.write(data)

    async def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    def __len__(self) -> int:
        return self._buffer.getbuffer().nbytes


class FileSink:
    """Streams the response body into a file, truncating existing content."""

    def __init__(self, path: str, handle: Any) -> None:
        self.path = path
        self._handle = handle
        self.closed = False

    @classmethod
    async def create(cls, path: str) -> "FileSink":
        try:
            handle = await aiofiles.open(path, "wb")
        except OSError as e:
            raise SinkError(f"failed to create file: {e}", path=path) from e
        return cls(path, handle)

    async def write(self, data: bytes) -> int:
        try:
            return await self._handle.write(data)
        except OSError as e:
            raise SinkError(f"failed to write file: {e}", path=self.path) from e

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._handle.close()

    async def size(self) -> int:
        """Size of the written file according to the file system."""
        stat = await aiofiles.os.stat(self.path)
        return stat.st_size


def validate_writer(writer_type: ResponseWriterType | str, path: str | None) -> None:
    """Check a writer configuration without touching the file system."""
    try:
        writer_type = ResponseWriterType(writer_type)
    except ValueError as e:
        raise InvalidWriterError(f"invalid writer type: {writer_type}") from e

    if writer_type is ResponseWriterType.FILE and not path:
        raise MissingFilePathError()
    if writer_type is ResponseWriterType.BUFFER and path:
        raise UnexpectedFilePathError(path)


async def open_sink(
    writer_type: ResponseWriterType | str, path: str | None
) -> BufferSink | FileSink:
    """Initialise the sink selected by configuration.

    File sinks are created (and truncated) here, before any body byte
    arrives.
    """
    validate_writer(writer_type, path)
    if ResponseWriterType(writer_type) is ResponseWriterType.FILE:
        assert path is not None
        sink = await FileSink.create(path)
        logger.debug("response_sink_opened", sink="file", path=path)
        return sink

    logger.debug("response_sink_opened", sink="buffer")
    return BufferSink()
