# src/pulse_service/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

UNKNOWN_DEVICE = "unknown"


class RunnerMode(StrEnum):
    """
    Display / lifecycle mode of a run instance.

    STOPPED is terminal for a run instance; FOREGROUND and BACKGROUND are
    interchangeable live states. Ticking happens in both live states.
    """

    STOPPED = "stopped"
    FOREGROUND = "foreground"
    BACKGROUND = "background"

    @property
    def is_live(self) -> bool:
        return self is not RunnerMode.STOPPED

    @classmethod
    def parse(cls, raw: str | None, default: RunnerMode) -> RunnerMode:
        if not raw:
            return default
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return default


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class StatusEvent:
    """One heartbeat: when it was computed and which device it came from."""

    timestamp_utc: datetime
    device_id: str


@dataclass(slots=True, frozen=True)
class ErrorRecord:
    timestamp_utc: datetime
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException, *, now: datetime | None = None) -> ErrorRecord:
        text = str(exc) or exc.__class__.__name__
        return cls(timestamp_utc=now or utc_now(), message=text)

    def to_log_line(self) -> str:
        return f"[ERROR] {self.timestamp_utc.isoformat()} {self.message}"
