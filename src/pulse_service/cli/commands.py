# src/pulse_service/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.state import AppState

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /toggle, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    running = state.call(state.host.is_running())
    ep = state.endpoint
    last = ep.latest_status
    if last is None:
        last_line = "no update received yet"
    else:
        last_line = f"{last.device_id} @ {last.timestamp_utc.isoformat()}"
    return (
        "Status:\n"
        f"  Service: {'RUNNING' if running else 'STOPPED'}\n"
        f"  Device: {ep.device_id}\n"
        f"  Last update: {last_line}\n"
        f"  Updates seen: {ep.updates_seen}"
    )


def _post_to_loop(state: AppState, fn: Callable[[], None]) -> bool:
    loop = state.loop
    if loop is None:
        return False
    try:
        loop.call_soon_threadsafe(fn)
    except RuntimeError:
        # Loop closed between the check and the call.
        logger.debug("Service loop closed; command not delivered.", exc_info=True)
        return False
    return True


def cmd_foreground(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not _post_to_loop(state, state.endpoint.set_foreground):
        return "Service loop is not running."
    return "Requested foreground mode."


def cmd_background(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not _post_to_loop(state, state.endpoint.set_background):
        return "Service loop is not running."
    return "Requested background mode."


def cmd_toggle(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    label = state.call(state.endpoint.toggle_service())
    stopped = label == "Start Service"
    return f"Service {'stopping' if stopped else 'started'}. Button now reads: {label}"


def cmd_logs(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /logs      -> last 20 error log entries
    /logs N    -> last N entries
    /logs all  -> everything
    """
    limit: int | None = 20
    if args:
        arg = args[0].lower()
        if arg == "all":
            limit = None
        else:
            try:
                limit = max(1, int(arg))
            except ValueError:
                return "Usage: /logs [N|all]"

    logs = state.log_sink.read_all_logs(limit=limit)
    if not logs:
        return "Error log is empty."
    return "\n".join(logs)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show service state and the last update.")
registry.register("fg", cmd_foreground, help_text="Switch the service to foreground mode.", aliases=["foreground"])
registry.register("bg", cmd_background, help_text="Switch the service to background mode.", aliases=["background"])
registry.register("toggle", cmd_toggle, help_text="Start the service, or stop it if running.")
registry.register("logs", cmd_logs, help_text="Show the error log: /logs [N|all].")
