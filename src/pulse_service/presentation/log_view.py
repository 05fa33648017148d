# src/pulse_service/presentation/log_view.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from ..core.ports import LogSink

logger = logging.getLogger(__name__)


class LogPoller:
    """
    Re-reads the error log on a fixed timer.

    Faults are not pushed to the presentation side; it finds them by polling.
    """

    def __init__(
        self,
        sink: LogSink,
        *,
        interval_seconds: float = 1.0,
        limit: int | None = None,
        on_logs: Callable[[list[str]], None] | None = None,
    ) -> None:
        self._sink = sink
        self._interval = max(0.01, float(interval_seconds))
        self._limit = limit
        self.on_logs = on_logs
        self.logs: list[str] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> list[str]:
        logs = await asyncio.to_thread(self._sink.read_all_logs, self._limit)
        changed = logs != self.logs
        self.logs = logs
        if changed and self.on_logs is not None:
            self.on_logs(list(logs))
        return logs

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Log poll failed")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="pulse-log-poll")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
