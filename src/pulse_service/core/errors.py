# src/pulse_service/core/errors.py

from __future__ import annotations


class PulseError(Exception):
    """Base class for all pulse_service errors."""


class ChannelError(PulseError):
    """Raised at the control channel boundary."""


class UnknownTopicError(ChannelError):
    def __init__(self, topic: str) -> None:
        super().__init__(f"Unknown control channel topic: {topic!r}")
        self.topic = topic


class PayloadValidationError(ChannelError):
    def __init__(self, topic: str, reason: str) -> None:
        super().__init__(f"Invalid payload for topic {topic!r}: {reason}")
        self.topic = topic
        self.reason = reason


class SubscriptionClosedError(ChannelError):
    """Raised when reading from a subscription that was already disposed."""


class PlatformFault(PulseError):
    """
    Notification / foreground-service API rejected a call.

    Raised by ForegroundControl implementations when the platform does not
    support the call or the OS denied it.
    """
