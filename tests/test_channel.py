# tests/test_channel.py

from __future__ import annotations

import asyncio

import pytest

from pulse_service.channel.messages import (
    ServiceStarted,
    SetAsForeground,
    SetDevice,
    StopService,
    Topic,
    Update,
    decode_message,
)
from pulse_service.core.errors import PayloadValidationError, UnknownTopicError

from .fakes import drain, next_message


@pytest.mark.asyncio
async def test_publish_without_listeners_is_dropped(channel) -> None:
    assert channel.publish("stopService") == 0

    # A listener attached later does not see the earlier message.
    sub = channel.subscribe("stopService")
    assert sub.pending() == 0
    sub.close()


@pytest.mark.asyncio
async def test_one_listener_on_several_topics_keeps_publish_order(channel) -> None:
    sub = channel.subscribe(Topic.SET_AS_BACKGROUND, "setAsForeground", Topic.SET_AS_BACKGROUND)
    assert sub.topics == (Topic.SET_AS_BACKGROUND, Topic.SET_AS_FOREGROUND)

    channel.invoke("setAsBackground")
    channel.invoke("setAsForeground")
    channel.invoke("setAsBackground")

    topics = [m.topic for m in await drain(sub)]
    assert topics == [Topic.SET_AS_BACKGROUND, Topic.SET_AS_FOREGROUND, Topic.SET_AS_BACKGROUND]

    sub.close()
    assert channel.listener_count(Topic.SET_AS_BACKGROUND) == 0
    assert channel.listener_count(Topic.SET_AS_FOREGROUND) == 0


@pytest.mark.asyncio
async def test_each_listener_gets_every_message_in_order(channel) -> None:
    a = channel.subscribe(Topic.SET_DEVICE)
    b = channel.subscribe(Topic.SET_DEVICE)

    for name in ("one", "two", "three"):
        assert channel.invoke("setDevice", {"device": name}) == 2

    got_a = [m.device for m in await drain(a)]
    got_b = [m.device for m in await drain(b)]
    assert got_a == ["one", "two", "three"]
    assert got_b == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_closing_one_listener_leaves_the_other(channel) -> None:
    a = channel.subscribe("update")
    b = channel.subscribe("update")
    a.close()
    a.close()  # idempotent

    assert channel.listener_count("update") == 1
    channel.publish("update", {"current_date": "2024-05-01T10:00:00+00:00", "device": "x"})

    msg = await next_message(b)
    assert isinstance(msg, Update)
    assert [m async for m in a] == []


@pytest.mark.asyncio
async def test_iteration_ends_when_closed_from_another_task(channel) -> None:
    sub = channel.subscribe("onServiceStarted")
    seen: list[object] = []

    async def consume() -> None:
        async for msg in sub:
            seen.append(msg)

    task = asyncio.create_task(consume())
    channel.publish("onServiceStarted")
    await asyncio.sleep(0.01)
    sub.close()
    await asyncio.wait_for(task, timeout=1.0)

    assert seen == [ServiceStarted()]
    assert channel.listener_count("onServiceStarted") == 0


@pytest.mark.asyncio
async def test_subscription_context_manager_disposes(channel) -> None:
    async with channel.subscribe("stopService") as sub:
        assert channel.listener_count("stopService") == 1
    assert sub.closed
    assert channel.listener_count("stopService") == 0


def test_unknown_topic_is_rejected(channel) -> None:
    with pytest.raises(UnknownTopicError):
        channel.publish("reboot")
    with pytest.raises(UnknownTopicError):
        channel.subscribe("reboot")


@pytest.mark.parametrize(
    ("topic", "payload"),
    [
        ("setDevice", {"device": 42}),
        ("setAsForeground", {"unexpected": True}),
        ("update", None),
        ("update", {"current_date": "yesterday", "device": "x"}),
        ("update", {"current_date": "2024-05-01T10:00:00", "device": None}),
        ("stopService", ["not", "a", "map"]),
    ],
)
def test_malformed_payloads_are_rejected(channel, topic, payload) -> None:
    with pytest.raises(PayloadValidationError):
        channel.publish(topic, payload)


def test_set_device_without_device_falls_back_to_unknown() -> None:
    assert decode_message("setDevice", None) == SetDevice(device="unknown")
    assert decode_message("setDevice", {"device": None}) == SetDevice(device="unknown")


def test_empty_topics_decode_to_their_message_types() -> None:
    assert decode_message("setAsForeground", None) == SetAsForeground()
    assert decode_message("stopService", {}) == StopService()


def test_update_wire_format() -> None:
    msg = decode_message("update", {"current_date": "2024-05-01T10:00:00.250000+00:00", "device": "Pixel7"})
    assert isinstance(msg, Update)
    assert msg.current_date.microsecond == 250000
    assert msg.to_payload() == {"current_date": "2024-05-01T10:00:00.250000+00:00", "device": "Pixel7"}
    assert msg.to_status().device_id == "Pixel7"
