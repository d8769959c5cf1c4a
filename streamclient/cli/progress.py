"""Terminal progress bars fed by the transfer progress callbacks."""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from streamclient.config.constants import UNKNOWN_SIZE
from streamclient.progress import ProgressCallback


MIN_UPDATE_INTERVAL = 0.1  # seconds between redraws


class ThrottledCallback:
    """Forwards progress reports at most once per ``min_interval``.

    A report with ``current == total`` is always forwarded, so the bar
    ends at 100% however fast the transfer was. Reports dropped by the
    throttle are kept and can be flushed with :meth:`flush`.
    """

    def __init__(
        self,
        callback: ProgressCallback,
        min_interval: float = MIN_UPDATE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._min_interval = min_interval
        self._clock = clock
        self._last_update: float | None = None
        self._pending: tuple[int, int] | None = None

    def __call__(self, current: int, total: int) -> None:
        now = self._clock()
        final = total != UNKNOWN_SIZE and current >= total
        if (
            not final
            and self._last_update is not None
            and now - self._last_update < self._min_interval
        ):
            self._pending = (current, total)
            return
        self._emit(now, current, total)

    def flush(self) -> None:
        if self._pending is not None:
            self._emit(self._clock(), *self._pending)

    def _emit(self, now: float, current: int, total: int) -> None:
        self._last_update = now
        self._pending = None
        self._callback(current, total)


class TransferProgress:
    """Upload and download bars for one request."""

    def __init__(self, progress: Progress) -> None:
        self._progress = progress
        self._callbacks: list[ThrottledCallback] = []

    def callback(self, description: str) -> ThrottledCallback:
        task_id = self._progress.add_task(description, total=None)
        throttled = ThrottledCallback(self._updater(task_id))
        self._callbacks.append(throttled)
        return throttled

    def _updater(self, task_id: TaskID) -> ProgressCallback:
        def update(current: int, total: int) -> None:
            self._progress.update(
                task_id,
                completed=current,
                total=None if total == UNKNOWN_SIZE else total,
            )

        return update

    def flush(self) -> None:
        for throttled in self._callbacks:
            throttled.flush()


@contextmanager
def transfer_progress(enabled: bool = True) -> Iterator[TransferProgress | None]:
    """Render transfer bars on stderr while the block runs."""
    if not enabled:
        yield None
        return

    progress = Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=Console(stderr=True),
        transient=False,
    )
    bars = TransferProgress(progress)
    with progress:
        try:
            yield bars
        finally:
            bars.flush()
