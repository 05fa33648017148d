# src/pulse_service/core/state.py

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..adapters.local import LoggingForegroundControl, StaticPermissionGate
from ..channel.bus import ControlChannel
from ..presentation.endpoint import PresentationEndpoint
from ..presentation.log_view import LogPoller
from ..runner.host import ServiceHost
from ..storage.log_sink import PrefsLogSink
from ..storage.prefs import PrefsStore

T = TypeVar("T")


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    prefs: PrefsStore
    log_sink: PrefsLogSink
    gate: StaticPermissionGate
    foreground: LoggingForegroundControl
    channel: ControlChannel
    host: ServiceHost
    endpoint: PresentationEndpoint
    log_poller: LogPoller

    # Event loop of the background thread (set once it is running).
    loop: asyncio.AbstractEventLoop | None = None
    permission_granted: bool = False

    def call(self, coro: Coroutine[Any, Any, T], timeout: float = 10.0) -> T:
        """Run a coroutine on the service loop from another thread and wait for the result."""
        if self.loop is None:
            coro.close()
            raise RuntimeError("service loop is not running")
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)
