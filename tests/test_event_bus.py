# tests/test_event_bus.py
# 同步事件总线测试

import asyncio
import logging

import pytest

from core.event_bus import EventBus
from core.exceptions import SubscriptionError


def test_emit_calls_subscribers_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe("chat", lambda data: calls.append(("a", data)))
    bus.subscribe("chat", lambda data: calls.append(("b", data)))
    bus.freeze()

    result = bus.emit("chat", 1)

    assert calls == [("a", 1), ("b", 1)]
    assert result == {"processed": True, "delivered": 2, "errors": []}


def test_emit_without_subscribers_is_dropped():
    bus = EventBus()
    bus.freeze()
    assert bus.emit("headline", object()) == {"processed": False, "delivered": 0, "errors": []}


def test_subscribe_after_freeze_is_rejected():
    bus = EventBus()
    bus.freeze()
    with pytest.raises(SubscriptionError):
        bus.subscribe("chat", print)


def test_frozen_table_is_read_only():
    bus = EventBus()
    bus.subscribe("chat", print)
    table = bus.freeze()
    assert table["chat"] == (print,)
    with pytest.raises(TypeError):
        table["chat"] = ()


def test_failing_subscriber_does_not_stop_siblings(caplog):
    bus = EventBus()
    seen = []
    reported = []

    def broken(data):
        raise RuntimeError("boom")

    bus.subscribe("chat", broken)
    bus.subscribe("chat", seen.append)
    bus.add_error_handler(lambda event_type, data, exc: reported.append((event_type, data, exc)))
    bus.freeze()

    with caplog.at_level(logging.ERROR, logger="EventBus"):
        result = bus.emit("chat", "payload")

    assert seen == ["payload"]
    assert result["delivered"] == 1
    assert len(result["errors"]) == 1
    assert isinstance(result["errors"][0][1], RuntimeError)
    assert reported[0][0] == "chat"
    assert reported[0][1] == "payload"
    assert "boom" in caplog.text


def test_broken_error_handler_is_contained():
    bus = EventBus()

    def broken(data):
        raise RuntimeError("boom")

    def broken_reporter(event_type, data, exc):
        raise ValueError("reporter failed")

    bus.subscribe("chat", broken)
    bus.add_error_handler(broken_reporter)
    bus.freeze()

    result = bus.emit("chat", None)
    assert result["processed"] is True
    assert result["delivered"] == 0


def test_listener_count_and_get_subscribers():
    bus = EventBus()

    def on_chat(data):
        pass

    bus.subscribe("chat", on_chat)
    assert bus.listener_count("chat") == 1
    bus.freeze()
    assert bus.listener_count("chat") == 1
    assert bus.listener_count("paused") == 0
    subscribers = bus.get_subscribers()
    assert list(subscribers) == ["chat"]
    assert subscribers["chat"][0].endswith("on_chat")
    assert bus.get_subscribers("paused") == {"paused": []}


def test_async_subscriber_is_scheduled_on_running_loop():
    bus = EventBus()
    ran = []

    async def on_chat(data):
        ran.append(data)

    bus.subscribe("chat", on_chat)
    bus.freeze()

    async def main():
        result = bus.emit("chat", "payload")
        assert ran == []
        await asyncio.sleep(0)
        return result

    result = asyncio.run(main())
    assert result == {"processed": True, "delivered": 1, "errors": []}
    assert ran == ["payload"]


def test_async_subscriber_failure_is_reported():
    bus = EventBus()
    reported = []

    async def broken(data):
        raise RuntimeError("async boom")

    bus.subscribe("chat", broken)
    bus.add_error_handler(lambda event_type, data, exc: reported.append((event_type, exc)))
    bus.freeze()

    async def main():
        bus.emit("chat", "payload")
        await asyncio.sleep(0.01)

    asyncio.run(main())
    assert len(reported) == 1
    assert reported[0][0] == "chat"
    assert isinstance(reported[0][1], RuntimeError)


def test_async_subscriber_without_loop_is_an_error():
    bus = EventBus()
    seen = []

    async def on_chat(data):
        seen.append(data)

    bus.subscribe("chat", on_chat)
    bus.subscribe("chat", seen.append)
    bus.freeze()

    result = bus.emit("chat", "payload")
    assert result["delivered"] == 1
    assert isinstance(result["errors"][0][1], RuntimeError)
    assert seen == ["payload"]
