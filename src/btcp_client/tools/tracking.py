"""Tracks the latest call and result for one tool through client events."""

import logging
import time
from typing import Any

from pydantic import BaseModel

from btcp_client.events import Unsubscribe
from btcp_client.models.events import (
    ClientEvent,
    ErrorEvent,
    ToolCallEvent,
    ToolResultEvent,
    tool_context,
)

logger = logging.getLogger(__name__)


class ToolCallRecord(BaseModel):
    name: str
    params: Any = None
    id: str = ""
    timestamp: float


class ToolResultRecord(BaseModel):
    name: str
    result: Any = None
    id: str = ""
    timestamp: float


class ToolActivityTracker:
    """Follows ``tool:call``, ``tool:result`` and ``error`` events for one tool.

    Usage:
        tracker = ToolActivityTracker(client, "search_dom")
        ...
        if tracker.is_executing: ...
        tracker.close()
    """

    def __init__(self, client: Any, tool_name: str) -> None:
        """Subscribe to the client's events.

        Args:
            client: Anything with the BTCPClient ``on`` method
            tool_name: The tool to follow
        """
        self.tool_name = tool_name
        self.last_call: ToolCallRecord | None = None
        self.last_result: ToolResultRecord | None = None
        self.last_error: BaseException | None = None
        self.is_executing = False
        self._unsubscribers: list[Unsubscribe] = [
            client.on(ClientEvent.TOOL_CALL, self._on_call),
            client.on(ClientEvent.TOOL_RESULT, self._on_result),
            client.on(ClientEvent.ERROR, self._on_error),
        ]

    def clear(self) -> None:
        """Forget the stored call, result and error."""
        self.last_call = None
        self.last_result = None
        self.last_error = None
        self.is_executing = False

    def close(self) -> None:
        """Stop following events. Idempotent."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_call(self, event: ToolCallEvent) -> None:
        if event.name != self.tool_name:
            return
        self.last_call = ToolCallRecord(
            name=event.name, params=event.params, id=event.id, timestamp=time.time()
        )
        self.is_executing = True

    def _on_result(self, event: ToolResultEvent) -> None:
        if event.name != self.tool_name:
            return
        self.last_result = ToolResultRecord(
            name=event.name, result=event.result, id=event.id, timestamp=time.time()
        )
        self.is_executing = False

    def _on_error(self, event: ErrorEvent) -> None:
        if event.context != tool_context(self.tool_name):
            return
        self.last_error = event.error
        self.is_executing = False
        logger.debug(f"Tool '{self.tool_name}' failed: {event.error}")
