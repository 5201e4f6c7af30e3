"""Contract for the core BTCP client that owns the transport.

The core client handles wire framing, sockets and reconnection backoff.
BTCPClient only talks to it through the protocols below, so any transport
that satisfies them can be plugged in via ``core_factory``.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from pydantic import BaseModel

from btcp_client.models.tool import ProtocolToolDefinition

# Called by the executor with (params, call_id)
InboundToolHandler = Callable[[Any, str], Awaitable[Any]]

# Events a core client reports to its listeners
CORE_EVENTS = frozenset({"connect", "disconnect", "reconnect", "error", "tool:call", "message"})


class CoreClientConfig(BaseModel):
    """Transport-facing settings handed to a core client factory."""

    server_url: str
    session_id: str | None = None
    auto_reconnect: bool = True
    reconnect_delay: int = 1000
    max_reconnect_attempts: int = 5
    connection_timeout: int = 10000
    debug: bool = False
    auth: dict[str, Any] | None = None


@runtime_checkable
class ToolExecutor(Protocol):
    """Dispatch surface for inbound tool calls."""

    def register_handler(self, name: str, handler: InboundToolHandler) -> None: ...

    def unregister_handler(self, name: str) -> bool: ...


@runtime_checkable
class CoreClient(Protocol):
    """Protocol every core client must satisfy."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def is_connected(self) -> bool: ...

    def get_session_id(self) -> str | None: ...

    async def register_tools(self, tools: list[ProtocolToolDefinition]) -> None: ...

    def on(self, event: str, handler: Callable[[Any], Any]) -> Callable[[], None]: ...

    def off(self, event: str, handler: Callable[[Any], Any]) -> None: ...

    def get_executor(self) -> ToolExecutor: ...


CoreClientFactory = Callable[[CoreClientConfig], CoreClient]
