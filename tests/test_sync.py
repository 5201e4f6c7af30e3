"""Tests for SyncCoordinator: full-view sends, coalescing and failure reporting."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from btcp_client.exceptions import SyncError
from btcp_client.models.tool import ToolDefinition
from btcp_client.sync import SyncCoordinator
from btcp_client.tools.registry import ToolRegistry


def _make_tool(name: str) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"Mock {name}", handler=lambda p: p)


@pytest.fixture
def registry():
    registry = ToolRegistry()
    registry.register(_make_tool("a"))
    return registry


@pytest.fixture
def errors():
    return []


def _coordinator(registry, send, errors, ready=True):
    return SyncCoordinator(
        registry=registry,
        send=send,
        is_ready=lambda: ready,
        on_error=errors.append,
    )


class TestSyncNow:

    @pytest.mark.asyncio
    async def test_sends_full_view(self, registry, errors):
        send = AsyncMock()
        registry.register(_make_tool("b"))
        coordinator = _coordinator(registry, send, errors)

        await coordinator.sync_now()

        send.assert_awaited_once()
        tools = send.await_args.args[0]
        assert [t.name for t in tools] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failure_propagates(self, registry, errors):
        send = AsyncMock(side_effect=RuntimeError("down"))
        coordinator = _coordinator(registry, send, errors)
        with pytest.raises(RuntimeError):
            await coordinator.sync_now()
        assert errors == []

    @pytest.mark.asyncio
    async def test_staleness_tracks_registry_revision(self, registry, errors):
        coordinator = _coordinator(registry, AsyncMock(), errors)
        assert coordinator.is_stale() is True
        await coordinator.sync_now()
        assert coordinator.is_stale() is False
        registry.register(_make_tool("b"))
        assert coordinator.is_stale() is True


class TestSchedule:

    @pytest.mark.asyncio
    async def test_burst_of_triggers_coalesces(self, registry, errors):
        send = AsyncMock()
        coordinator = _coordinator(registry, send, errors)

        registry.register(_make_tool("b"))
        coordinator.schedule("tool-registration-sync")
        registry.register(_make_tool("c"))
        coordinator.schedule("tool-registration-sync")
        coordinator.schedule("tool-registration-sync")
        await coordinator.wait()

        send.assert_awaited_once()
        assert [t.name for t in send.await_args.args[0]] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_trigger_during_flight_sends_follow_up(self, registry, errors):
        sent: list[list[str]] = []
        coordinator = None

        async def send(tools):
            sent.append([t.name for t in tools])
            if len(sent) == 1:
                registry.register(_make_tool("b"))
                coordinator.schedule()

        coordinator = _coordinator(registry, send, errors)
        coordinator.schedule()
        await coordinator.wait()

        assert sent == [["a"], ["a", "b"]]
        assert not coordinator.in_flight

    @pytest.mark.asyncio
    async def test_not_ready_skips_send(self, registry, errors):
        send = AsyncMock()
        coordinator = _coordinator(registry, send, errors, ready=False)
        coordinator.schedule()
        await coordinator.wait()
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_reported_not_raised(self, registry, errors):
        send = AsyncMock(side_effect=RuntimeError("session gone"))
        coordinator = _coordinator(registry, send, errors)

        coordinator.schedule("tool-unregistration-sync")
        await coordinator.wait()

        assert len(errors) == 1
        assert isinstance(errors[0], SyncError)
        assert errors[0].context == "tool-unregistration-sync"
        assert isinstance(errors[0].cause, RuntimeError)

    def test_without_running_loop_is_deferred(self, registry, errors):
        send = AsyncMock()
        coordinator = _coordinator(registry, send, errors)
        coordinator.schedule()
        assert coordinator.in_flight is False
        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_stops_in_flight_sync(self, registry, errors):
        gate = asyncio.Event()

        async def send(tools):
            await gate.wait()

        coordinator = _coordinator(registry, send, errors)
        coordinator.schedule()
        await asyncio.sleep(0)
        assert coordinator.in_flight

        coordinator.cancel()
        await coordinator.wait()

        assert not coordinator.in_flight
        assert errors == []
