# tests/test_bootstrap.py

from __future__ import annotations

import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from pulse_service.cli.bootstrap import create_initial_state
from pulse_service.cli.commands import registry
from pulse_service.cli.main import start_service_in_background
from pulse_service.core.models import RunnerMode


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_initial_state.

    We intentionally use a SimpleNamespace rather than reading the environment,
    to keep tests isolated and deterministic.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        prefs_db_path=tmp_path / "prefs.sqlite3",
        prefs_scope="test",
        auto_start=True,
        initial_mode=RunnerMode.FOREGROUND,
        tick_interval_seconds=0.02,
        warmup_seconds=0.05,
        notification_title="Foreground service",
        notification_content="Current time {now}",
        initial_notification_title="Pulse service",
        initial_notification_content="Initializing",
        notification_permission=True,
        log_poll_interval_seconds=0.02,
        device_id="bench-01",
    )


def test_service_thread_runs_and_accepts_commands(settings: SimpleNamespace) -> None:
    state = create_initial_state(settings=settings)
    bg = start_service_in_background(state)
    assert bg is not None
    try:
        assert state.permission_granted
        assert state.call(state.host.is_running())

        deadline = time.monotonic() + 2.0
        while state.endpoint.latest_status is None and time.monotonic() < deadline:
            time.sleep(0.01)
        assert state.endpoint.latest_status is not None
        assert state.endpoint.latest_status.device_id == "bench-01"
        assert state.prefs.get_string("device_name") == "bench-01"
        assert state.foreground.is_foreground

        reply = registry.handle(state, "/status")
        assert "RUNNING" in reply
        assert "bench-01" in reply
    finally:
        bg.stop()
        bg.join(timeout=5.0)

    assert not bg.thread.is_alive()
    assert state.loop is None


def test_permission_denied_never_starts_service(settings: SimpleNamespace) -> None:
    settings.notification_permission = False
    state = create_initial_state(settings=settings)
    bg = start_service_in_background(state)
    assert bg is not None

    bg.join(timeout=5.0)
    assert not state.permission_granted
    assert state.host.runner is None
    assert state.gate.requests == 1
