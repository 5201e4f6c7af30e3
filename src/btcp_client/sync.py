"""Keeps the remote session's tool list in step with the local registry."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from btcp_client.exceptions import SyncError
from btcp_client.models.events import SYNC_CONTEXT
from btcp_client.models.tool import ProtocolToolDefinition
from btcp_client.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Sends the registry's full protocol view to the remote session.

    Every sync transmits the whole view, read at send time, never a delta.
    At most one background sync runs at a time; triggers that arrive while
    one is in flight collapse into a single follow-up send. Background
    failures go to ``on_error`` and are never raised to the caller that
    scheduled them.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        send: Callable[[list[ProtocolToolDefinition]], Awaitable[None]],
        is_ready: Callable[[], bool],
        on_error: Callable[[SyncError], None],
    ) -> None:
        """Initialize the coordinator.

        Args:
            registry: Source of truth for the tool list
            send: Transmits a tool list to the session
            is_ready: Whether background syncs may run right now
            on_error: Receives background sync failures
        """
        self._registry = registry
        self._send = send
        self._is_ready = is_ready
        self._on_error = on_error
        self._task: asyncio.Task | None = None
        self._pending = False
        self._context = SYNC_CONTEXT
        self._synced_revision: int | None = None

    async def sync_now(self) -> None:
        """Send the current view and wait for it. Failures propagate."""
        revision = self._registry.revision
        tools = self._registry.to_protocol_format()
        logger.debug(f"Syncing {len(tools)} tools (revision {revision})")
        await self._send(tools)
        if self._synced_revision is None or revision > self._synced_revision:
            self._synced_revision = revision

    def schedule(self, context: str = SYNC_CONTEXT) -> None:
        """Request a background sync without waiting for it."""
        self._pending = True
        self._context = context
        if self.in_flight:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; deferring {context} to the next connect")
            self._pending = False
            return
        self._task = loop.create_task(self._drain())

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_stale(self) -> bool:
        """True if the registry changed since the last successful send."""
        return self._synced_revision != self._registry.revision

    async def wait(self) -> None:
        """Wait until no background sync is running."""
        while self.in_flight:
            await asyncio.wait({self._task})

    def cancel(self) -> None:
        """Drop any pending request and cancel the running sync."""
        self._pending = False
        if self.in_flight:
            self._task.cancel()

    async def _drain(self) -> None:
        while self._pending:
            self._pending = False
            context = self._context
            if not self._is_ready():
                logger.debug(f"Skipping {context}: session not ready")
                return
            try:
                await self.sync_now()
            except Exception as e:
                logger.warning(f"Tool sync failed ({context}): {e}")
                self._on_error(SyncError(context, e))
