"""Progress-tracking stream decorators.

A :class:`ProgressCounter` owns the cumulative byte count for one logical
transfer and invokes the user callback with ``(transferred, total)``.
:class:`ProgressReader` and :class:`ProgressWriter` decorate an async chunk
iterator or a response sink and feed the counter.

Byte accounting is exact and monotonic. Throttling, if any, belongs to the
presentation layer that receives the callback.
"""

import threading
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import TYPE_CHECKING

from streamclient.config.constants import UNKNOWN_SIZE


if TYPE_CHECKING:
    from streamclient.sink import ResponseSink


ProgressCallback = Callable[[int, int], None]


class ProgressStage(str, Enum):
    """Where upload progress is measured when compression is active."""

    BEFORE_COMPRESSION = "before_compression"  # original payload bytes
    AFTER_COMPRESSION = "after_compression"  # bytes on the wire


class ProgressCounter:
    """Thread-safe cumulative byte counter bound to a progress callback."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self._total = total
        self._callback = callback
        self._transferred = 0
        self._last_reported: tuple[int, int] | None = None
        self._lock = threading.Lock()

    @property
    def transferred(self) -> int:
        return self._transferred

    @property
    def total(self) -> int:
        return self._total

    def add(self, n: int) -> int:
        """Record ``n`` more bytes and report the new cumulative count."""
        if n <= 0:
            return self._transferred
        with self._lock:
            self._transferred += n
            snapshot = (self._transferred, self._total)
            self._report(snapshot)
        return snapshot[0]

    def extend(self, size: int) -> None:
        """Expect a replayed payload of ``size`` bytes (redirect hop).

        The new total is what was already transferred plus ``size``, so a
        hop whose body was only partly read still ends at ``current == total``.
        """
        with self._lock:
            if self._total == UNKNOWN_SIZE or size == UNKNOWN_SIZE:
                self._total = UNKNOWN_SIZE
            else:
                self._total = self._transferred + size

    def complete(self) -> None:
        """Emit the final report once the stream was fully consumed.

        When the total was unknown while streaming (decompressed bodies,
        compressed uploads) the real size is known now and is reported as
        the total, so every successful transfer ends with ``current == total``.
        """
        with self._lock:
            total = self._transferred if self._total == UNKNOWN_SIZE else self._total
            snapshot = (self._transferred, total)
            if snapshot != self._last_reported:
                self._report(snapshot)

    def _report(self, snapshot: tuple[int, int]) -> None:
        self._last_reported = snapshot
        if self._callback is not None:
            self._callback(*snapshot)


class ProgressReader:
    """Async chunk iterator that reports every chunk to a counter.

    Several readers may share one counter: a payload replayed after a
    redirect is wrapped in a fresh reader over the same counter, so the
    reported byte count keeps growing across the hop.
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        counter: ProgressCounter,
        *,
        complete_on_exhaustion: bool = True,
    ) -> None:
        self._source = source
        self.counter = counter
        self._complete_on_exhaustion = complete_on_exhaustion

    def __aiter__(self) -> "ProgressReader":
        return self

    async def __anext__(self) -> bytes:
        try:
            chunk = await self._source.__anext__()
        except StopAsyncIteration:
            if self._complete_on_exhaustion:
                self.counter.complete()
            raise
        self.counter.add(len(chunk))
        return chunk

    def clone_for_redirect(self, source: AsyncIterator[bytes], size: int) -> "ProgressReader":
        """Wrap a rehydrated payload stream, sharing this reader's counter."""
        self.counter.extend(size)
        return ProgressReader(
            source, self.counter, complete_on_exhaustion=self._complete_on_exhaustion
        )


class ProgressWriter:
    """Response sink decorator that reports every written chunk."""

    def __init__(self, sink: "ResponseSink", counter: ProgressCounter) -> None:
        self._sink = sink
        self.counter = counter

    async def write(self, data: bytes) -> int:
        n = await self._sink.write(data)
        self.counter.add(n)
        return n

    async def close(self) -> None:
        await self._sink.close()
