# src/pulse_service/presentation/endpoint.py

from __future__ import annotations

"""
Presentation endpoint.

The foreground side of the app. It never touches the runner directly: it starts
the service through the host, sends commands with invoke(), and learns what
happened from the `onServiceStarted` / `update` topics.

Startup handshake:
1. subscribe to onServiceStarted (before anything can start the service)
2. configure the host (auto_start may start a run instance right away)
3. on every onServiceStarted, push setDevice {device} to the runner
4. if the service was already running when we attached, push setDevice once directly
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from ..channel.bus import Subscription
from ..channel.messages import Topic, Update
from ..core.models import UNKNOWN_DEVICE, RunnerMode, StatusEvent
from ..core.ports import CapabilityGate, DeviceIdResolver, KeyValueStore
from ..runner.host import ServiceHost

logger = logging.getLogger(__name__)

DEVICE_NAME_KEY = "device_name"

LABEL_START = "Start Service"
LABEL_STOP = "Stop Service"

StatusCallback = Callable[[StatusEvent], None]


class PresentationEndpoint:
    def __init__(
        self,
        host: ServiceHost,
        *,
        prefs: KeyValueStore,
        capability_gate: CapabilityGate,
        resolve_device: DeviceIdResolver,
        auto_start: bool = True,
        initial_mode: RunnerMode | None = None,
        on_update: StatusCallback | None = None,
    ) -> None:
        self._host = host
        self._prefs = prefs
        self._gate = capability_gate
        self._resolve_device = resolve_device
        self._auto_start = auto_start
        self._initial_mode = initial_mode
        self.on_update = on_update

        self.device_id: str = UNKNOWN_DEVICE
        self.latest_status: StatusEvent | None = None
        self.updates_seen = 0
        self.handshakes = 0
        self.button_label = LABEL_STOP

        self._subs: list[Subscription] = []
        self._tasks: list[asyncio.Task[None]] = []

    async def check_permission_at_startup(self) -> bool:
        """True if notifications may be shown; asks once when not yet granted."""
        if await self._gate.is_notification_permission_granted():
            return True
        granted = await self._gate.request_notification_permission()
        logger.info("Notification permission requested: granted=%s", granted)
        return granted

    async def initialize(self) -> None:
        try:
            device = await self._resolve_device()
        except Exception:
            logger.exception("Device id lookup failed; using %r", UNKNOWN_DEVICE)
            device = None
        self.device_id = device or UNKNOWN_DEVICE

        try:
            self._prefs.set_string(DEVICE_NAME_KEY, self.device_id)
        except Exception:
            logger.exception("Failed to persist device name")

        started_sub = self._host.on(Topic.SERVICE_STARTED)
        update_sub = self._host.on(Topic.UPDATE)
        self._subs.extend([started_sub, update_sub])
        self._tasks.append(asyncio.create_task(self._handshake_loop(started_sub), name="pulse-handshake"))
        self._tasks.append(asyncio.create_task(self._update_loop(update_sub), name="pulse-updates"))

        was_running = await self._host.is_running()
        await self._host.configure(auto_start=self._auto_start, initial_mode=self._initial_mode)

        if was_running:
            # onServiceStarted already fired before we listened; bind directly.
            self._send_device()

        self.button_label = LABEL_STOP if await self._host.is_running() else LABEL_START
        logger.info("Presentation ready device=%s", self.device_id)

    def _send_device(self) -> None:
        self._host.invoke(Topic.SET_DEVICE, {"device": self.device_id})
        self.handshakes += 1

    async def _handshake_loop(self, sub: Subscription) -> None:
        async for _ in sub:
            logger.debug("onServiceStarted received; sending device=%s", self.device_id)
            self._send_device()

    async def _update_loop(self, sub: Subscription) -> None:
        async for message in sub:
            if not isinstance(message, Update):
                continue
            status = message.to_status()
            self.latest_status = status
            self.updates_seen += 1
            if self.on_update is not None:
                try:
                    self.on_update(status)
                except Exception:
                    logger.exception("on_update callback failed")

    # ---- controls ----

    def set_foreground(self) -> None:
        self._host.invoke(Topic.SET_AS_FOREGROUND)

    def set_background(self) -> None:
        self._host.invoke(Topic.SET_AS_BACKGROUND)

    async def toggle_service(self) -> str:
        """Stop the service if it runs, start it otherwise. Returns the new button label."""
        running = await self._host.is_running()
        if running:
            self._host.invoke(Topic.STOP_SERVICE)
        else:
            await self._host.start_service()
        self.button_label = LABEL_START if running else LABEL_STOP
        return self.button_label

    async def close(self) -> None:
        for sub in self._subs:
            sub.close()
        for task in self._tasks:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._subs.clear()
        self._tasks.clear()
