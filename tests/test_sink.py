"""Tests for response writer sinks."""

from pathlib import Path

import pytest

from streamclient.core.errors import (
    InvalidWriterError,
    MissingFilePathError,
    SinkError,
    UnexpectedFilePathError,
)
from streamclient.sink import (
    BufferSink,
    FileSink,
    ResponseWriterType,
    open_sink,
    validate_writer,
)


@pytest.mark.unit
class TestValidateWriter:
    def test_buffer_without_path(self) -> None:
        validate_writer(ResponseWriterType.BUFFER, None)

    def test_file_with_path(self) -> None:
        validate_writer("file", "/tmp/out.bin")

    def test_file_requires_path(self) -> None:
        with pytest.raises(MissingFilePathError):
            validate_writer(ResponseWriterType.FILE, None)

    def test_buffer_rejects_path(self) -> None:
        with pytest.raises(UnexpectedFilePathError):
            validate_writer(ResponseWriterType.BUFFER, "/tmp/out.bin")

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidWriterError) as exc_info:
            validate_writer("socket", None)
        assert "socket" in exc_info.value.message


@pytest.mark.unit
class TestSinks:
    async def test_buffer_sink(self) -> None:
        sink = await open_sink(ResponseWriterType.BUFFER, None)
        assert isinstance(sink, BufferSink)
        await sink.write(b"hello ")
        await sink.write(b"world")
        await sink.close()
        assert sink.getvalue() == b"hello world"
        assert len(sink) == 11

    async def test_file_sink_truncates_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.bin"
        path.write_bytes(b"previous content that is longer")
        sink = await open_sink(ResponseWriterType.FILE, str(path))
        assert isinstance(sink, FileSink)
        assert path.read_bytes() == b""
        await sink.write(b"new")
        await sink.close()
        assert path.read_bytes() == b"new"
        assert await sink.size() == 3

    async def test_file_sink_close_is_idempotent(self, tmp_path: Path) -> None:
        sink = await FileSink.create(str(tmp_path / "out.bin"))
        await sink.close()
        await sink.close()
        assert sink.closed

    async def test_file_sink_unwritable_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SinkError) as exc_info:
            await FileSink.create(str(tmp_path / "missing" / "out.bin"))
        assert exc_info.value.details["path"].endswith("out.bin")
