# src/pulse_service/runner/host.py

from __future__ import annotations

"""
Service host: the owner of run instances.

Replaces a process-wide service singleton with an explicit object that is
created by the composition root and injected where needed. The host:
- keeps the run options (auto_start, initial_mode) set by configure()
- creates a fresh BackgroundRunner on every start_service()
- forgets an instance once it has closed (e.g. after a stopService command)
- exposes the channel as invoke()/on() for the presentation side
"""

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from typing import Any

from ..channel.bus import ControlChannel, Subscription
from ..channel.messages import Topic
from ..core.models import RunnerMode
from ..core.ports import CapabilityGate, ForegroundControl, LogSink
from .service import BackgroundRunner, RunnerOptions, stop_and_wait

logger = logging.getLogger(__name__)


class ServiceHost:
    def __init__(
        self,
        channel: ControlChannel,
        *,
        log_sink: LogSink,
        capability_gate: CapabilityGate,
        foreground: ForegroundControl | None = None,
        options: RunnerOptions | None = None,
    ) -> None:
        self.channel = channel
        self._log_sink = log_sink
        self._gate = capability_gate
        self._foreground = foreground
        self._options = options or RunnerOptions()

        self._runner: BackgroundRunner | None = None
        self._watchers: set[asyncio.Task[None]] = set()
        self._start_lock = asyncio.Lock()
        self.instances_started = 0

    @property
    def runner(self) -> BackgroundRunner | None:
        """Current run instance (None when nothing is running)."""
        return self._runner

    async def configure(
        self,
        *,
        auto_start: bool = True,
        initial_mode: RunnerMode | None = None,
    ) -> None:
        if initial_mode is not None:
            self._options = self._options.with_mode(initial_mode)
        logger.info(
            "Service configured auto_start=%s initial_mode=%s",
            auto_start,
            self._options.initial_mode.value,
        )
        if auto_start:
            await self.start_service()

    async def start_service(self) -> bool:
        """Start a new run instance. No-op (returns False) while one is already running."""
        async with self._start_lock:
            if self._runner is not None and self._runner.is_running:
                logger.debug("start_service ignored: already running")
                return False

            runner = BackgroundRunner(
                self.channel,
                log_sink=self._log_sink,
                capability_gate=self._gate,
                foreground=self._foreground,
                options=self._options,
            )
            self._runner = runner
            self.instances_started += 1
            await runner.start()

            watcher = asyncio.create_task(self._watch(runner), name="pulse-runner-watch")
            self._watchers.add(watcher)
            watcher.add_done_callback(self._watchers.discard)
            return True

    async def _watch(self, runner: BackgroundRunner) -> None:
        await runner.wait_closed()
        if self._runner is runner:
            self._runner = None
            logger.info("Run instance closed")

    async def is_running(self) -> bool:
        return self._runner is not None and self._runner.is_running

    def invoke(self, topic: str | Topic, payload: Mapping[str, Any] | None = None) -> int:
        return self.channel.invoke(topic, payload)

    def on(self, topic: str | Topic) -> Subscription:
        return self.channel.subscribe(topic)

    async def shutdown(self, timeout: float = 5.0) -> None:
        runner = self._runner
        if runner is not None:
            await stop_and_wait(runner, timeout=timeout)
        for w in list(self._watchers):
            w.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await w
        self._runner = None
        logger.info("Service host shut down")
