# src/pulse_service/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (prefs, log sink, platform adapters, channel,
  service host, presentation endpoint) into AppState.
"""

from __future__ import annotations

import logging

from ..adapters.local import LoggingForegroundControl, StaticPermissionGate, resolve_local_device_id
from ..channel.bus import ControlChannel
from ..config import get_settings
from ..core.state import AppState
from ..presentation.endpoint import PresentationEndpoint
from ..presentation.log_view import LogPoller
from ..runner.host import ServiceHost
from ..runner.service import RunnerOptions
from ..storage.log_sink import PrefsLogSink
from ..storage.prefs import PrefsStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.prefs_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    prefs = PrefsStore(settings.prefs_db_path, scope=settings.prefs_scope)
    log_sink = PrefsLogSink(prefs)
    gate = StaticPermissionGate(granted=settings.notification_permission)
    foreground = LoggingForegroundControl()
    channel = ControlChannel()

    host = ServiceHost(
        channel,
        log_sink=log_sink,
        capability_gate=gate,
        foreground=foreground,
        options=RunnerOptions.from_settings(settings),
    )

    async def resolve_device() -> str | None:
        return await resolve_local_device_id(settings.device_id)

    endpoint = PresentationEndpoint(
        host,
        prefs=prefs,
        capability_gate=gate,
        resolve_device=resolve_device,
        auto_start=settings.auto_start,
        initial_mode=settings.initial_mode,
    )
    log_poller = LogPoller(log_sink, interval_seconds=settings.log_poll_interval_seconds)

    return AppState(
        settings=settings,
        prefs=prefs,
        log_sink=log_sink,
        gate=gate,
        foreground=foreground,
        channel=channel,
        host=host,
        endpoint=endpoint,
        log_poller=log_poller,
    )
