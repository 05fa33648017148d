# src/pulse_service/channel/bus.py

from __future__ import annotations

"""
Named-topic control channel.

A small in-process publish/subscribe transport:
- publish() is fire-and-forget; if nobody listens, the message is dropped
- each subscribe() call gets its own queue and sees every later message in publish order
- queues are unbounded, so a slow or absent subscriber never blocks the publisher
- no persistence, no acknowledgement, no replay

All payloads are validated against the topic's message type before fan-out.
The channel is bound to the event loop it is used from; publish from other
threads via loop.call_soon_threadsafe.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from ..core.errors import SubscriptionClosedError
from .messages import ChannelMessage, Topic, decode_message

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable listener handle.

    Iterate with `async for msg in sub`. Iteration ends after close(); a closed
    subscription cannot be restarted (subscribe again instead).

    One handle may cover several topics; they share a single queue, so messages
    come out in the order they were published across all of them.
    """

    def __init__(self, channel: ControlChannel, topics: tuple[Topic, ...]) -> None:
        self._channel = channel
        self.topics = topics
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def topic(self) -> Topic:
        return self.topics[0]

    def _label(self) -> str:
        return ",".join(t.value for t in self.topics)

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()

    def _deliver(self, message: ChannelMessage) -> None:
        if not self._closed:
            self._queue.put_nowait(message)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel._detach(self)
        # Wake a reader blocked in get().
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> ChannelMessage:
        """Next message; raises SubscriptionClosedError once the handle is closed and drained."""
        if self._closed and self._queue.empty():
            raise SubscriptionClosedError(f"Subscription to {self._label()!r} is closed")
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so any other waiter also stops.
            self._queue.put_nowait(_CLOSED)
            raise SubscriptionClosedError(f"Subscription to {self._label()!r} is closed")
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ChannelMessage:
        try:
            return await self.get()
        except SubscriptionClosedError:
            raise StopAsyncIteration from None

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription topics={self._label()} {state} pending={self.pending()}>"


class ControlChannel:
    """Bidirectional bus between the background runner and the presentation endpoint."""

    def __init__(self) -> None:
        self._listeners: dict[Topic, list[Subscription]] = {}

    def subscribe(self, topic: str | Topic, *more: str | Topic) -> Subscription:
        """Listen on one or more topics through a single ordered queue."""
        topics = tuple(dict.fromkeys(Topic.parse(t) for t in (topic, *more)))
        sub = Subscription(self, topics)
        for t in topics:
            self._listeners.setdefault(t, []).append(sub)
            logger.debug("subscribe topic=%s listeners=%d", t.value, len(self._listeners[t]))
        return sub

    def publish(self, topic: str | Topic, payload: Mapping[str, Any] | None = None) -> int:
        """
        Validate and fan out a raw payload.

        Returns the number of listeners the message was delivered to (0 = dropped).
        Raises UnknownTopicError / PayloadValidationError on bad input.
        """
        return self.publish_message(decode_message(topic, payload))

    # Same semantics; name used for presentation -> runner commands.
    invoke = publish

    def publish_message(self, message: ChannelMessage) -> int:
        listeners = list(self._listeners.get(message.topic, ()))
        if not listeners:
            logger.debug("No listeners for topic=%s; dropped", message.topic.value)
            return 0
        for sub in listeners:
            sub._deliver(message)
        return len(listeners)

    def listener_count(self, topic: str | Topic) -> int:
        return len(self._listeners.get(Topic.parse(topic), ()))

    def close(self) -> None:
        for subs in list(self._listeners.values()):
            for sub in list(subs):
                sub.close()
        self._listeners.clear()

    def _detach(self, sub: Subscription) -> None:
        for topic in sub.topics:
            subs = self._listeners.get(topic)
            if not subs:
                continue
            try:
                subs.remove(sub)
            except ValueError:
                pass
            if not subs:
                self._listeners.pop(topic, None)
