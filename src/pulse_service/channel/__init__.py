"""Control channel: named-topic publish/subscribe between runner and presentation."""

from .bus import ControlChannel, Subscription
from .messages import (
    ChannelMessage,
    ServiceStarted,
    SetAsBackground,
    SetAsForeground,
    SetDevice,
    StopService,
    Topic,
    Update,
    decode_message,
)

__all__ = [
    "ChannelMessage",
    "ControlChannel",
    "ServiceStarted",
    "SetAsBackground",
    "SetAsForeground",
    "SetDevice",
    "StopService",
    "Subscription",
    "Topic",
    "Update",
    "decode_message",
]
