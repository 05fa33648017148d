# src/pulse_service/runner/service.py

from __future__ import annotations

"""
Background task runner.

One BackgroundRunner is one run instance:
- start() subscribes one inbox to all command topics, announces onServiceStarted, schedules the tick loop
- the loop fires after a warm-up delay, then on a fixed cadence
- every tick publishes an `update` StatusEvent (plus a notification refresh in foreground mode)
- stop() is terminal; a fresh start needs a fresh instance (see ServiceHost)

Commands arrive over the channel and only mutate mode/device slots; each tick works
on a snapshot taken at its start, so a command never changes a tick halfway through.
A fault inside a tick is converted to an ErrorRecord, appended to the log sink, and absorbed.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from ..channel.bus import ControlChannel, Subscription
from ..channel.messages import (
    ChannelMessage,
    ServiceStarted,
    SetAsBackground,
    SetAsForeground,
    SetDevice,
    StopService,
    Topic,
    Update,
)
from ..core.models import UNKNOWN_DEVICE, ErrorRecord, RunnerMode, StatusEvent, utc_now
from ..core.ports import CapabilityGate, ForegroundControl, LogSink

logger = logging.getLogger(__name__)

COMMAND_TOPICS = (
    Topic.SET_DEVICE,
    Topic.SET_AS_FOREGROUND,
    Topic.SET_AS_BACKGROUND,
    Topic.STOP_SERVICE,
)


@dataclass(slots=True, frozen=True)
class RunnerOptions:
    initial_mode: RunnerMode = RunnerMode.FOREGROUND
    tick_interval_seconds: float = 1.0
    warmup_seconds: float = 1.0

    notification_title: str = "Foreground service"
    notification_content: str = "Current time {now}"
    initial_notification_title: str = "Pulse service"
    initial_notification_content: str = "Initializing"

    @classmethod
    def from_settings(cls, settings) -> RunnerOptions:
        return cls(
            initial_mode=settings.initial_mode,
            tick_interval_seconds=settings.tick_interval_seconds,
            warmup_seconds=settings.warmup_seconds,
            notification_title=settings.notification_title,
            notification_content=settings.notification_content,
            initial_notification_title=settings.initial_notification_title,
            initial_notification_content=settings.initial_notification_content,
        )

    def with_mode(self, mode: RunnerMode) -> RunnerOptions:
        return replace(self, initial_mode=mode)


class BackgroundRunner:
    def __init__(
        self,
        channel: ControlChannel,
        *,
        log_sink: LogSink,
        capability_gate: CapabilityGate,
        foreground: ForegroundControl | None = None,
        options: RunnerOptions | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._channel = channel
        self._log_sink = log_sink
        self._gate = capability_gate
        self._foreground = foreground
        self._options = options or RunnerOptions()
        self._clock = clock

        if not self._options.initial_mode.is_live:
            raise ValueError("initial_mode must be FOREGROUND or BACKGROUND")

        self._mode = RunnerMode.STOPPED
        self._device = UNKNOWN_DEVICE
        # Mode last pushed to ForegroundControl (None = nothing applied yet).
        self._applied_mode: RunnerMode | None = None

        self._started = False
        self._stop_requested = False
        self._wake = asyncio.Event()
        self._subscriptions: list[Subscription] = []
        self._pumps: list[asyncio.Task[None]] = []
        self._loop_task: asyncio.Task[None] | None = None

        self.ticks = 0
        self.faults = 0

    # ---- queries ----

    @property
    def mode(self) -> RunnerMode:
        return self._mode

    @property
    def device_id(self) -> str:
        return self._device

    @property
    def is_running(self) -> bool:
        return self._started and not self._stop_requested

    # ---- lifecycle ----

    async def start(self) -> bool:
        """Start this run instance. Returns False (no-op) if it already started or was stopped."""
        if self._started or self._stop_requested:
            return False
        self._started = True
        self._mode = self._options.initial_mode

        # One inbox for every command topic keeps commands in publish order.
        inbox = self._channel.subscribe(*COMMAND_TOPICS)
        self._subscriptions.append(inbox)
        self._pumps.append(asyncio.create_task(self._pump(inbox), name="pulse-commands"))

        if self._foreground is not None:
            try:
                await self._sync_platform_mode(self._mode)
                if self._mode is RunnerMode.FOREGROUND and await self._gate.is_notification_permission_granted():
                    await self._foreground.set_foreground_notification_info(
                        title=self._options.initial_notification_title,
                        content=self._options.initial_notification_content,
                    )
            except Exception as e:
                await self._record_fault(e)

        self._channel.publish_message(ServiceStarted())
        logger.info("Runner started mode=%s", self._mode.value)

        self._loop_task = asyncio.create_task(self._run_loop(), name="pulse-tick-loop")
        return True

    def stop(self) -> bool:
        """Terminal transition to STOPPED. Idempotent; returns False if already stopped."""
        if self._stop_requested:
            return False
        self._stop_requested = True
        self._mode = RunnerMode.STOPPED
        self._wake.set()
        for sub in self._subscriptions:
            sub.close()
        logger.info("Runner stop requested (ticks=%d faults=%d)", self.ticks, self.faults)
        return True

    async def wait_closed(self) -> None:
        """Wait until the tick loop and command pumps have exited."""
        tasks: list[asyncio.Task[None]] = list(self._pumps)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        current = asyncio.current_task()
        tasks = [t for t in tasks if t is not current]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---- commands ----

    def set_mode(self, mode: RunnerMode) -> None:
        if not mode.is_live:
            raise ValueError("use stop() to enter STOPPED")
        if self._stop_requested:
            logger.debug("set_mode(%s) ignored: runner stopped", mode.value)
            return
        self._mode = mode
        logger.info("Runner mode -> %s", mode.value)

    def bind_device(self, device_id: str) -> None:
        self._device = device_id or UNKNOWN_DEVICE
        logger.info("Runner device bound: %s", self._device)

    def _handle_command(self, message: ChannelMessage) -> None:
        if isinstance(message, SetDevice):
            self.bind_device(message.device)
        elif isinstance(message, SetAsForeground):
            self.set_mode(RunnerMode.FOREGROUND)
        elif isinstance(message, SetAsBackground):
            self.set_mode(RunnerMode.BACKGROUND)
        elif isinstance(message, StopService):
            self.stop()
        else:
            logger.warning("Unexpected command on runner: %r", message)

    async def _pump(self, sub: Subscription) -> None:
        async for message in sub:
            try:
                self._handle_command(message)
            except Exception:
                logger.exception("Command handler failed topic=%s", message.topic.value)

    # ---- tick loop ----

    async def _sleep_until(self, deadline: float) -> bool:
        """Sleep until `deadline` (loop time). Returns True if woken early by stop()."""
        delay = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        interval = max(0.001, float(self._options.tick_interval_seconds))
        next_fire = loop.time() + max(0.0, float(self._options.warmup_seconds))

        while True:
            if await self._sleep_until(next_fire):
                break
            if self._mode is RunnerMode.STOPPED:
                break

            await self.tick()

            next_fire += interval
            now = loop.time()
            if next_fire <= now:
                # Tick overran; skip the fires we missed instead of bursting.
                missed = int((now - next_fire) // interval) + 1
                next_fire += missed * interval
                logger.debug("Tick overran; skipped %d fire(s)", missed)

        logger.info("Runner tick loop exited (ticks=%d)", self.ticks)

    async def tick(self) -> StatusEvent | None:
        """
        One heartbeat. Returns the published StatusEvent, or None when stopped or on failure.

        Never raises: faults are recorded to the log sink and swallowed.
        """
        mode, device = self._mode, self._device
        if mode is RunnerMode.STOPPED:
            return None
        self.ticks += 1

        try:
            await self._sync_platform_mode(mode)
            if mode is RunnerMode.FOREGROUND:
                await self._refresh_notification()
        except Exception as e:
            await self._record_fault(e)

        try:
            status = StatusEvent(timestamp_utc=self._clock(), device_id=device)
            self._channel.publish_message(Update.from_status(status))
            return status
        except Exception as e:
            await self._record_fault(e)
            return None

    async def _sync_platform_mode(self, mode: RunnerMode) -> None:
        if self._foreground is None:
            self._applied_mode = mode
            return
        if mode is self._applied_mode:
            return
        if mode is RunnerMode.FOREGROUND:
            await self._foreground.set_as_foreground()
        else:
            await self._foreground.set_as_background()
        self._applied_mode = mode

    async def _refresh_notification(self) -> None:
        if self._foreground is None:
            return
        if not await self._gate.is_notification_permission_granted():
            return
        content = self._options.notification_content.format(now=self._clock().isoformat())
        await self._foreground.set_foreground_notification_info(
            title=self._options.notification_title,
            content=content,
        )

    async def _record_fault(self, exc: BaseException) -> None:
        self.faults += 1
        record = ErrorRecord.from_exception(exc, now=self._clock())
        logger.warning("Tick fault absorbed: %s", record.message, exc_info=exc)
        try:
            await self._log_sink.append_log(record.to_log_line())
        except Exception:
            logger.exception("append_log failed; fault not persisted")

    def __repr__(self) -> str:
        return f"<BackgroundRunner mode={self._mode.value} device={self._device} ticks={self.ticks}>"


async def stop_and_wait(runner: BackgroundRunner, timeout: float | None = None) -> None:
    runner.stop()
    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(runner.wait_closed(), timeout=timeout)
