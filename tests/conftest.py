# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from pulse_service.channel.bus import ControlChannel
from pulse_service.runner.service import RunnerOptions
from pulse_service.storage.log_sink import PrefsLogSink
from pulse_service.storage.prefs import PrefsStore

from .fakes import FakeForeground, FakeGate, FakeLogSink


@pytest.fixture()
def channel() -> ControlChannel:
    return ControlChannel()


@pytest.fixture()
def log_sink() -> FakeLogSink:
    return FakeLogSink()


@pytest.fixture()
def gate() -> FakeGate:
    return FakeGate(granted=True)


@pytest.fixture()
def foreground() -> FakeForeground:
    return FakeForeground()


@pytest.fixture()
def fast_options() -> RunnerOptions:
    """Short cadence so loop-level tests finish in well under a second."""
    return RunnerOptions(tick_interval_seconds=0.02, warmup_seconds=0.02)


@pytest.fixture()
def manual_options() -> RunnerOptions:
    """
    Warm-up long enough that the loop never fires during a test.

    Tests using this drive ticks by calling runner.tick() directly, which makes
    mode/device snapshots fully deterministic.
    """
    return RunnerOptions(tick_interval_seconds=60.0, warmup_seconds=60.0)


@pytest.fixture()
def prefs(tmp_path: Path) -> PrefsStore:
    return PrefsStore(tmp_path / "prefs.sqlite3")


@pytest.fixture()
def prefs_log_sink(prefs: PrefsStore) -> PrefsLogSink:
    return PrefsLogSink(prefs)
