"""Progress reporting for long-running analysis passes.

Measurement tasks publish ProgressEvents to a queue. A single reporter
task drains the queue, keeps the latest percentage per stream, and
rewrites one stderr line every interval:

    Analyzing: 0:1 45.2% | 0:2 12.0%
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TextIO

from streamnorm.domain.models import ProgressEvent

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0


class ProgressReporter:
    """Periodic single-line progress display fed by an event queue.

    Use as an async context manager around the work being reported:

        async with ProgressReporter() as reporter:
            await measure_loudness(..., progress=reporter.publish)
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        enabled: bool = True,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            interval: Seconds between display updates.
            enabled: If False, events are consumed but nothing is written
                (JSON output, tests).
            stream: Output stream, stderr by default.
        """
        self.interval = interval
        self.enabled = enabled
        self._stream = stream
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self._state: dict[str, float] = {}
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._rendered = False

    @property
    def state(self) -> dict[str, float]:
        """Latest percentage per stream key."""
        return dict(self._state)

    def publish(self, event: ProgressEvent) -> None:
        """Queue an event. Safe to call from any task on the loop."""
        self._queue.put_nowait(event)

    def drain(self) -> None:
        """Apply all queued events to the state."""
        while True:
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._state[event.stream] = event.percent

    def render_line(self) -> str:
        parts = [f"{key} {pct:.1f}%" for key, pct in sorted(self._state.items())]
        return "\rAnalyzing: " + " | ".join(parts)

    def _write(self, text: str) -> None:
        if not self.enabled:
            return
        out = self._stream or sys.stderr
        out.write(text)
        out.flush()

    def _refresh(self) -> None:
        self.drain()
        if self._state:
            self._write(self.render_line())
            self._rendered = True

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            self._refresh()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="progress-reporter")

    async def stop(self) -> None:
        """Stop the reporter and finish the progress line."""
        self._stop.set()
        if self._task is not None:
            task, self._task = self._task, None
            if not task.done():
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._refresh()
        if self._rendered:
            self._write("\n")
            self._rendered = False

    async def __aenter__(self) -> ProgressReporter:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
