# tests/test_presentation.py

from __future__ import annotations

import pytest

from pulse_service.presentation.endpoint import LABEL_START, LABEL_STOP, PresentationEndpoint
from pulse_service.presentation.log_view import LogPoller
from pulse_service.runner.host import ServiceHost
from pulse_service.runner.service import RunnerOptions

from .fakes import FakeGate, wait_until


@pytest.fixture()
def host(channel, log_sink, gate, foreground) -> ServiceHost:
    # Warm-up leaves room for the handshake before the first tick.
    options = RunnerOptions(tick_interval_seconds=0.02, warmup_seconds=0.05)
    return ServiceHost(
        channel,
        log_sink=log_sink,
        capability_gate=gate,
        foreground=foreground,
        options=options,
    )


def make_endpoint(host, prefs, gate, device: str | None = "Pixel7", **kwargs) -> PresentationEndpoint:
    async def resolve() -> str | None:
        return device

    return PresentationEndpoint(host, prefs=prefs, capability_gate=gate, resolve_device=resolve, **kwargs)


@pytest.mark.asyncio
async def test_initialize_runs_handshake(host, prefs, gate) -> None:
    seen: list[str] = []
    ep = make_endpoint(host, prefs, gate, on_update=lambda s: seen.append(s.device_id))

    await ep.initialize()

    assert prefs.get_string("device_name") == "Pixel7"
    assert ep.button_label == LABEL_STOP
    assert await wait_until(lambda: ep.latest_status is not None)
    assert ep.latest_status.device_id == "Pixel7"
    assert seen[0] == "Pixel7"
    assert ep.handshakes == 1

    await ep.close()
    await host.shutdown()


@pytest.mark.asyncio
async def test_unresolved_device_is_unknown(host, prefs, gate) -> None:
    ep = make_endpoint(host, prefs, gate, device=None)
    await ep.initialize()

    assert prefs.get_string("device_name") == "unknown"
    assert await wait_until(lambda: ep.latest_status is not None)
    assert ep.latest_status.device_id == "unknown"

    await ep.close()
    await host.shutdown()


@pytest.mark.asyncio
async def test_attach_to_running_service_rebinds(host, prefs, gate) -> None:
    # Service came up before anyone listened for onServiceStarted.
    await host.start_service()

    ep = make_endpoint(host, prefs, gate, device="Tablet")
    await ep.initialize()

    assert ep.handshakes == 1
    assert await wait_until(lambda: ep.latest_status is not None and ep.latest_status.device_id == "Tablet")

    await ep.close()
    await host.shutdown()


@pytest.mark.asyncio
async def test_toggle_stops_then_starts(host, prefs, gate) -> None:
    ep = make_endpoint(host, prefs, gate)
    await ep.initialize()
    assert await host.is_running()

    assert await ep.toggle_service() == LABEL_START
    assert await wait_until(lambda: host.runner is None)

    assert await ep.toggle_service() == LABEL_STOP
    assert await host.is_running()
    # The new instance announced itself and got the device again.
    assert await wait_until(lambda: ep.handshakes == 2)

    await ep.close()
    await host.shutdown()


@pytest.mark.asyncio
async def test_mode_buttons_reach_runner(host, prefs, gate) -> None:
    ep = make_endpoint(host, prefs, gate, auto_start=True)
    await ep.initialize()
    runner = host.runner

    ep.set_background()
    assert await wait_until(lambda: runner.mode.value == "background")
    ep.set_foreground()
    assert await wait_until(lambda: runner.mode.value == "foreground")

    await ep.close()
    await host.shutdown()


@pytest.mark.asyncio
async def test_permission_check_requests_once(host, prefs) -> None:
    denied = FakeGate(granted=False)
    ep = make_endpoint(host, prefs, denied)
    assert await ep.check_permission_at_startup() is False
    assert denied.requests == 1

    granted_later = FakeGate(granted=False, grant_on_request=True)
    ep2 = make_endpoint(host, prefs, granted_later)
    assert await ep2.check_permission_at_startup() is True


@pytest.mark.asyncio
async def test_log_poller_reads_on_its_own_timer(log_sink) -> None:
    snapshots: list[list[str]] = []
    poller = LogPoller(log_sink, interval_seconds=0.01, on_logs=snapshots.append)

    assert await poller.poll_once() == []
    poller.start()
    await log_sink.append_log("[ERROR] 2024-05-01T10:00:00+00:00 boom")

    assert await wait_until(lambda: len(poller.logs) == 1)
    await poller.stop()
    assert not poller.running
    assert snapshots[-1] == ["[ERROR] 2024-05-01T10:00:00+00:00 boom"]
