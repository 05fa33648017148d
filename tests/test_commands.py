# tests/test_commands.py

from __future__ import annotations

import asyncio
from types import SimpleNamespace

from pulse_service.cli.commands import CommandRegistry, registry

from .fakes import FakeLogSink


def test_command_registry_routes_and_aliases() -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    def handler(state, args, emit):
        called.append(args)
        if emit is not None:
            emit("note")
        return "done"

    reg.register("ping", handler, "ping", aliases=["p"])

    notes: list[str] = []
    assert reg.handle(None, "/ping a b", emit=notes.append) == "done"
    assert reg.handle(None, "/P") == "done"
    assert called == [["a", "b"], []]
    assert notes == ["note"]
    assert "/ping - ping" in reg.build_help()


def test_command_registry_unknown_and_non_command() -> None:
    reg = CommandRegistry()
    assert reg.handle(None, "hello") is None
    assert "Unknown command" in (reg.handle(None, "/nope") or "")
    assert "Empty command" in (reg.handle(None, "/") or "")


def test_logs_command_reads_sink() -> None:
    sink = FakeLogSink()
    sink.lines.extend(f"[ERROR] e{i}" for i in range(30))
    state = SimpleNamespace(log_sink=sink)

    assert registry.handle(state, "/logs 2") == "[ERROR] e28\n[ERROR] e29"
    assert len(registry.handle(state, "/logs").splitlines()) == 20
    assert len(registry.handle(state, "/logs all").splitlines()) == 30
    assert registry.handle(state, "/logs many") == "Usage: /logs [N|all]"
    assert registry.handle(SimpleNamespace(log_sink=FakeLogSink()), "/logs") == "Error log is empty."


def test_mode_commands_without_service_loop() -> None:
    endpoint = SimpleNamespace(set_foreground=lambda: None, set_background=lambda: None)
    state = SimpleNamespace(loop=None, endpoint=endpoint)

    assert registry.handle(state, "/fg") == "Service loop is not running."
    assert registry.handle(state, "/background") == "Service loop is not running."


def test_mode_commands_with_closed_loop() -> None:
    loop = asyncio.new_event_loop()
    loop.close()
    endpoint = SimpleNamespace(set_foreground=lambda: None, set_background=lambda: None)
    state = SimpleNamespace(loop=loop, endpoint=endpoint)

    assert registry.handle(state, "/bg") == "Service loop is not running."


def test_mode_commands_post_to_service_loop() -> None:
    calls: list[str] = []
    endpoint = SimpleNamespace(
        set_foreground=lambda: calls.append("fg"),
        set_background=lambda: calls.append("bg"),
    )
    loop = asyncio.new_event_loop()
    try:
        state = SimpleNamespace(loop=loop, endpoint=endpoint)
        assert registry.handle(state, "/fg") == "Requested foreground mode."
        assert registry.handle(state, "/bg") == "Requested background mode."
        loop.run_until_complete(asyncio.sleep(0))
    finally:
        loop.close()

    assert calls == ["fg", "bg"]
