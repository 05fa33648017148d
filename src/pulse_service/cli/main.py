# src/pulse_service/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then:
- runs the service host + presentation endpoint on an event loop in a background thread,
- runs the console REPL in the main thread (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import threading
from dataclasses import dataclass

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.state import AppState
from ..logging_setup import setup_logging
from .console import run_console_loop

logger = logging.getLogger(__name__)


async def _run_app(state: AppState, stop_event: asyncio.Event, ready: threading.Event) -> None:
    try:
        state.permission_granted = await state.endpoint.check_permission_at_startup()
        if not state.permission_granted:
            logger.warning("Notification permission missing; service will not start.")
            return

        await state.endpoint.initialize()

        def _on_logs(logs: list[str]) -> None:
            if logs:
                logger.info("Error log now holds %d entries (latest: %s)", len(logs), logs[-1])

        state.log_poller.on_logs = _on_logs
        state.log_poller.start()
    finally:
        ready.set()

    try:
        await stop_event.wait()
    finally:
        await state.log_poller.stop()
        await state.endpoint.close()
        await state.host.shutdown()
        state.channel.close()


@dataclass
class ServiceBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal service stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_service_in_background(state: AppState) -> ServiceBackgroundRunner | None:
    """
    Start the async side in a background thread (so the console REPL can run in parallel).

    Why a thread:
    - console REPL is blocking (input()).
    - the runner tick loop is async and wants its own event loop.
    """
    loop_ready = threading.Event()
    app_ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        state.loop = loop
        loop_ready.set()

        try:
            loop.run_until_complete(_run_app(state, stop_event, app_ready))
        except Exception:
            logger.exception("Service loop crashed.")
        finally:
            app_ready.set()
            with contextlib.suppress(Exception):
                loop.close()
            state.loop = None

    t = threading.Thread(target=runner, name="pulse-service", daemon=True)
    t.start()

    loop_ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Service thread did not initialize properly.")
        return None

    app_ready.wait(timeout=10.0)
    logger.info("Service background thread started.")
    return ServiceBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    bg = start_service_in_background(state)
    if bg is None:
        return

    if not state.permission_granted:
        print("Notification permission is required to use this app.")
        print("Enable it in the system settings (PULSE_NOTIFICATION_PERMISSION=1) and restart.")
        bg.stop()
        bg.join(timeout=5.0)
        return

    try:
        if settings.console_enabled:
            # Ctrl+C surfaces as KeyboardInterrupt inside input().
            run_console_loop(state)
        else:
            stop_main = threading.Event()

            def _handle_signal(signum, _frame) -> None:
                logger.info("Signal %s received, shutting down...", signum)
                stop_main.set()

            try:
                signal.signal(signal.SIGINT, _handle_signal)
                signal.signal(signal.SIGTERM, _handle_signal)
            except (ValueError, OSError):
                logger.debug("Signal handlers not installed.", exc_info=True)

            logger.info("Console disabled. Running the service only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        bg.stop()
        bg.join(timeout=10.0)
        state.prefs.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
