"""Tests for progress counters and stream decorators."""

import threading
from collections.abc import AsyncIterator

import pytest
from conftest import ProgressRecorder

from streamclient.config.constants import UNKNOWN_SIZE
from streamclient.progress import ProgressCounter, ProgressReader, ProgressWriter
from streamclient.sink import BufferSink


async def agen(parts: list[bytes]) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


@pytest.mark.unit
class TestProgressCounter:
    def test_reports_cumulative_count(self) -> None:
        recorder = ProgressRecorder()
        counter = ProgressCounter(10, recorder)
        counter.add(4)
        counter.add(6)
        assert recorder.calls == [(4, 10), (10, 10)]

    def test_zero_bytes_not_reported(self) -> None:
        recorder = ProgressRecorder()
        counter = ProgressCounter(10, recorder)
        counter.add(0)
        assert recorder.calls == []

    def test_complete_does_not_repeat_final_report(self) -> None:
        recorder = ProgressRecorder()
        counter = ProgressCounter(3, recorder)
        counter.add(3)
        counter.complete()
        assert recorder.calls == [(3, 3)]

    def test_complete_with_unknown_total_reports_real_size(self) -> None:
        recorder = ProgressRecorder()
        counter = ProgressCounter(UNKNOWN_SIZE, recorder)
        counter.add(5)
        counter.add(7)
        counter.complete()
        assert recorder.calls == [(5, UNKNOWN_SIZE), (12, UNKNOWN_SIZE), (12, 12)]

    def test_complete_on_empty_transfer(self) -> None:
        recorder = ProgressRecorder()
        ProgressCounter(0, recorder).complete()
        assert recorder.last == (0, 0)

    def test_extend_covers_replayed_payload(self) -> None:
        recorder = ProgressRecorder()
        counter = ProgressCounter(4, recorder)
        counter.add(4)
        counter.extend(4)
        counter.add(4)
        counter.complete()
        assert recorder.last == (8, 8)
        assert recorder.currents() == sorted(recorder.currents())

    def test_extend_after_partial_read(self) -> None:
        counter = ProgressCounter(10, None)
        counter.add(3)
        counter.extend(10)
        assert counter.total == 13

    def test_thread_safe_accumulation(self) -> None:
        counter = ProgressCounter(UNKNOWN_SIZE, None)

        def worker() -> None:
            for _ in range(1000):
                counter.add(1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert counter.transferred == 8000


@pytest.mark.unit
class TestProgressReader:
    async def test_reports_each_chunk_and_completes(self) -> None:
        recorder = ProgressRecorder()
        reader = ProgressReader(agen([b"ab", b"cde"]), ProgressCounter(5, recorder))
        data = b"".join([chunk async for chunk in reader])
        assert data == b"abcde"
        assert recorder.calls == [(2, 5), (5, 5)]

    async def test_clone_for_redirect_shares_counter(self) -> None:
        recorder = ProgressRecorder()
        first = ProgressReader(agen([b"abc"]), ProgressCounter(3, recorder))
        [chunk async for chunk in first]
        second = first.clone_for_redirect(agen([b"abc"]), 3)
        [chunk async for chunk in second]
        assert second.counter is first.counter
        assert recorder.last == (6, 6)
        assert recorder.currents() == sorted(recorder.currents())


@pytest.mark.unit
class TestProgressWriter:
    async def test_reports_written_bytes(self) -> None:
        recorder = ProgressRecorder()
        sink = BufferSink()
        writer = ProgressWriter(sink, ProgressCounter(6, recorder))
        await writer.write(b"abc")
        await writer.write(b"def")
        await writer.close()
        assert sink.getvalue() == b"abcdef"
        assert sink.closed
        assert recorder.calls == [(3, 6), (6, 6)]
