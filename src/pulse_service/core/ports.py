# src/pulse_service/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the runner and the presentation endpoint.

The core depends on Protocols instead of platform implementations.
This keeps notification/permission/storage backends swappable and makes testing easier.
"""

from typing import Awaitable, Protocol


class CapabilityGate(Protocol):
    """Notification permission check. Queried every tick before a foreground refresh."""

    def is_notification_permission_granted(self) -> Awaitable[bool]: ...

    def request_notification_permission(self) -> Awaitable[bool]: ...


class ForegroundControl(Protocol):
    """
    Foreground-service capability.

    Only platforms that support a foreground service provide one; the runner
    checks for its presence instead of checking platform identity.
    Every call may fail with PlatformFault.
    """

    def set_as_foreground(self) -> Awaitable[None]: ...

    def set_as_background(self) -> Awaitable[None]: ...

    def set_foreground_notification_info(self, *, title: str, content: str) -> Awaitable[None]: ...


class LogSink(Protocol):
    """Append-only error log with a bounded read side."""

    def append_log(self, message: str) -> Awaitable[None]: ...

    def read_all_logs(self, limit: int | None = None) -> list[str]: ...


class KeyValueStore(Protocol):
    def get_string(self, key: str) -> str | None: ...
    def set_string(self, key: str, value: str) -> None: ...
    def get_string_list(self, key: str) -> list[str] | None: ...
    def set_string_list(self, key: str, values: list[str]) -> None: ...
    def append_to_list(self, key: str, value: str) -> int: ...
    def remove(self, key: str) -> None: ...
    def reload(self) -> None: ...


class DeviceIdResolver(Protocol):
    """Returns an opaque device identifier (may be None when the platform has none)."""

    def __call__(self) -> Awaitable[str | None]: ...
