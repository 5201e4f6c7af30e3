"""Tests for EventEmitter subscription handling."""

import asyncio
import logging

import pytest

from btcp_client.events import EventEmitter
from btcp_client.models.events import ClientEvent


@pytest.fixture
def emitter():
    return EventEmitter()


class TestSubscriptions:
    """on/off/once semantics."""

    def test_on_receives_payload(self, emitter):
        seen = []
        emitter.on("connect", seen.append)
        emitter.emit(ClientEvent.CONNECT, {"session_id": "s1"})
        assert seen == [{"session_id": "s1"}]

    def test_string_and_enum_keys_are_equivalent(self, emitter):
        seen = []
        emitter.on(ClientEvent.TOOL_CALL, seen.append)
        emitter.emit("tool:call", 1)
        assert seen == [1]

    def test_unknown_event_name_rejected(self, emitter):
        with pytest.raises(ValueError):
            emitter.on("tool:unknown", print)

    def test_unsubscribe_callable(self, emitter):
        seen = []
        unsubscribe = emitter.on("error", seen.append)
        unsubscribe()
        unsubscribe()
        emitter.emit("error", "x")
        assert seen == []

    def test_off_is_idempotent(self, emitter):
        emitter.off("error", print)
        assert emitter.listener_count("error") == 0

    def test_same_handler_subscribed_once(self, emitter):
        seen = []
        emitter.on("message", seen.append)
        emitter.on("message", seen.append)
        emitter.emit("message", "m")
        assert seen == ["m"]

    def test_once_fires_a_single_time(self, emitter):
        seen = []
        emitter.once("reconnect", seen.append)
        emitter.emit("reconnect", 1)
        emitter.emit("reconnect", 2)
        assert seen == [1]
        assert emitter.listener_count("reconnect") == 0

    def test_once_can_be_cancelled(self, emitter):
        seen = []
        unsubscribe = emitter.once("reconnect", seen.append)
        unsubscribe()
        emitter.emit("reconnect", 1)
        assert seen == []

    def test_clear(self, emitter):
        emitter.on("connect", print)
        emitter.clear()
        assert emitter.listener_count("connect") == 0


class TestEmit:
    """Emission order and robustness."""

    def test_handlers_fire_in_subscription_order(self, emitter):
        order = []
        emitter.on("message", lambda p: order.append("first"))
        emitter.on("message", lambda p: order.append("second"))
        emitter.emit("message", None)
        assert order == ["first", "second"]

    def test_handler_removing_itself_does_not_skip_others(self, emitter):
        order = []

        def first(payload):
            order.append("first")
            emitter.off("message", first)

        emitter.on("message", first)
        emitter.on("message", lambda p: order.append("second"))
        emitter.on("message", lambda p: order.append("third"))

        emitter.emit("message", None)
        emitter.emit("message", None)

        assert order == ["first", "second", "third", "second", "third"]

    def test_handler_added_during_emit_waits_for_next_emit(self, emitter):
        order = []

        def adder(payload):
            order.append("adder")
            emitter.on("message", lambda p: order.append("late"))

        emitter.on("message", adder)
        emitter.emit("message", None)
        assert order == ["adder"]

    def test_handler_exception_is_logged_not_raised(self, emitter, caplog):
        seen = []

        def broken(payload):
            raise RuntimeError("handler bug")

        emitter.on("error", broken)
        emitter.on("error", seen.append)

        with caplog.at_level(logging.ERROR, logger="btcp_client"):
            emitter.emit("error", "payload")

        assert seen == ["payload"]
        assert "handler bug" in caplog.text

    @pytest.mark.asyncio
    async def test_async_handler_scheduled(self, emitter):
        seen = []

        async def handler(payload):
            seen.append(payload)

        emitter.on("connect", handler)
        emitter.emit("connect", "s1")
        await asyncio.sleep(0)
        assert seen == ["s1"]

    @pytest.mark.asyncio
    async def test_async_handler_failure_is_logged(self, emitter, caplog):
        async def handler(payload):
            raise RuntimeError("async bug")

        emitter.on("connect", handler)
        with caplog.at_level(logging.ERROR, logger="btcp_client"):
            emitter.emit("connect", None)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
        assert "async bug" in caplog.text

    def test_async_handler_without_loop_is_dropped(self, emitter, caplog):
        async def handler(payload):
            pass

        emitter.on("connect", handler)
        with caplog.at_level(logging.WARNING, logger="btcp_client"):
            emitter.emit("connect", None)
        assert "No running event loop" in caplog.text
