# src/pulse_service/adapters/local.py

from __future__ import annotations

"""
Desktop stand-ins for phone platform services.

There is no OS notification shade or foreground-service API on a desktop, so:
- the permission gate answers from configuration
- the foreground control logs what it would show and remembers it
- the device id comes from the host name
"""

import asyncio
import logging
import platform
from collections import deque
from dataclasses import dataclass, field

from ..core.errors import PlatformFault

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StaticPermissionGate:
    granted: bool = True
    requests: int = 0

    async def is_notification_permission_granted(self) -> bool:
        return self.granted

    async def request_notification_permission(self) -> bool:
        # No prompt to show; the configured answer is final.
        self.requests += 1
        return self.granted


@dataclass(slots=True)
class NotificationInfo:
    title: str
    content: str


@dataclass(slots=True)
class LoggingForegroundControl:
    """
    ForegroundControl that records state instead of talking to an OS.

    supported=False makes every call raise PlatformFault, which is how an
    unsupported or revoked foreground service surfaces on a real device.
    """

    supported: bool = True
    is_foreground: bool = False
    last_notification: NotificationInfo | None = None
    history: deque[NotificationInfo] = field(default_factory=lambda: deque(maxlen=50))

    def _check(self, op: str) -> None:
        if not self.supported:
            raise PlatformFault(f"{op}: foreground service not supported on this platform")

    async def set_as_foreground(self) -> None:
        self._check("setAsForeground")
        self.is_foreground = True
        logger.debug("Foreground service enabled")

    async def set_as_background(self) -> None:
        self._check("setAsBackground")
        self.is_foreground = False
        logger.debug("Foreground service disabled")

    async def set_foreground_notification_info(self, *, title: str, content: str) -> None:
        self._check("setForegroundNotificationInfo")
        info = NotificationInfo(title=title, content=content)
        self.last_notification = info
        self.history.append(info)
        logger.debug("Notification: %s | %s", title, content)


def _node_name() -> str | None:
    name = platform.node().strip()
    return name or None


async def resolve_local_device_id(override: str | None = None) -> str | None:
    """Device identifier for this machine: explicit override, else the host name."""
    if override and override.strip():
        return override.strip()
    return await asyncio.to_thread(_node_name)
