# src/pulse_service/channel/messages.py

from __future__ import annotations

"""
Typed messages carried by the control channel.

One message class per topic. Raw map payloads are validated here, at the
channel boundary, before any endpoint sees them.

Wire contract:

    onServiceStarted   runner -> presentation   (no payload)
    setDevice          presentation -> runner   {"device": str}
    setAsForeground    presentation -> runner   (no payload)
    setAsBackground    presentation -> runner   (no payload)
    stopService        presentation -> runner   (no payload)
    update             runner -> presentation   {"current_date": ISO-8601, "device": str}
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from ..core.errors import PayloadValidationError, UnknownTopicError
from ..core.models import UNKNOWN_DEVICE, StatusEvent


class Topic(StrEnum):
    SERVICE_STARTED = "onServiceStarted"
    SET_DEVICE = "setDevice"
    SET_AS_FOREGROUND = "setAsForeground"
    SET_AS_BACKGROUND = "setAsBackground"
    STOP_SERVICE = "stopService"
    UPDATE = "update"

    @classmethod
    def parse(cls, raw: str | Topic) -> Topic:
        if isinstance(raw, Topic):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise UnknownTopicError(str(raw)) from None


@dataclass(slots=True, frozen=True)
class _EmptyMessage:
    topic: ClassVar[Topic]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None):
        if payload:
            raise PayloadValidationError(cls.topic, "expected no payload")
        return cls()

    def to_payload(self) -> dict[str, Any] | None:
        return None


@dataclass(slots=True, frozen=True)
class ServiceStarted(_EmptyMessage):
    topic: ClassVar[Topic] = Topic.SERVICE_STARTED


@dataclass(slots=True, frozen=True)
class SetAsForeground(_EmptyMessage):
    topic: ClassVar[Topic] = Topic.SET_AS_FOREGROUND


@dataclass(slots=True, frozen=True)
class SetAsBackground(_EmptyMessage):
    topic: ClassVar[Topic] = Topic.SET_AS_BACKGROUND


@dataclass(slots=True, frozen=True)
class StopService(_EmptyMessage):
    topic: ClassVar[Topic] = Topic.STOP_SERVICE


@dataclass(slots=True, frozen=True)
class SetDevice:
    device: str
    topic: ClassVar[Topic] = Topic.SET_DEVICE

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> SetDevice:
        raw = (payload or {}).get("device")
        if raw is None:
            return cls(device=UNKNOWN_DEVICE)
        if not isinstance(raw, str):
            raise PayloadValidationError(cls.topic, f"'device' must be a string, got {type(raw).__name__}")
        return cls(device=raw)

    def to_payload(self) -> dict[str, Any]:
        return {"device": self.device}


@dataclass(slots=True, frozen=True)
class Update:
    current_date: datetime
    device: str
    topic: ClassVar[Topic] = Topic.UPDATE

    @classmethod
    def from_status(cls, status: StatusEvent) -> Update:
        return cls(current_date=status.timestamp_utc, device=status.device_id)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> Update:
        if not payload:
            raise PayloadValidationError(cls.topic, "payload is required")

        raw_date = payload.get("current_date")
        device = payload.get("device")
        if not isinstance(raw_date, str):
            raise PayloadValidationError(cls.topic, "'current_date' must be an ISO-8601 string")
        if not isinstance(device, str):
            raise PayloadValidationError(cls.topic, "'device' must be a string")
        try:
            current_date = datetime.fromisoformat(raw_date)
        except ValueError:
            raise PayloadValidationError(cls.topic, f"unparseable current_date {raw_date!r}") from None
        return cls(current_date=current_date, device=device)

    def to_payload(self) -> dict[str, Any]:
        return {"current_date": self.current_date.isoformat(), "device": self.device}

    def to_status(self) -> StatusEvent:
        return StatusEvent(timestamp_utc=self.current_date, device_id=self.device)


ChannelMessage = ServiceStarted | SetDevice | SetAsForeground | SetAsBackground | StopService | Update

MESSAGE_TYPES: dict[Topic, type] = {
    Topic.SERVICE_STARTED: ServiceStarted,
    Topic.SET_DEVICE: SetDevice,
    Topic.SET_AS_FOREGROUND: SetAsForeground,
    Topic.SET_AS_BACKGROUND: SetAsBackground,
    Topic.STOP_SERVICE: StopService,
    Topic.UPDATE: Update,
}


def decode_message(topic: str | Topic, payload: Mapping[str, Any] | None) -> ChannelMessage:
    """Validate a raw map payload for `topic` and return its typed message."""
    t = Topic.parse(topic)
    if payload is not None and not isinstance(payload, Mapping):
        raise PayloadValidationError(t, f"payload must be a mapping, got {type(payload).__name__}")
    return MESSAGE_TYPES[t].from_payload(payload)
