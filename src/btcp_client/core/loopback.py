"""In-process core client stub.

Satisfies the CoreClient contract without any transport: connections
succeed locally, tool registrations are recorded, and inbound tool calls
are dispatched through the executor. The real transport provides a core
client with the same contract.
"""

import logging
from typing import Any, Callable
from uuid import uuid4

from btcp_client.core.base import CORE_EVENTS, CoreClientConfig, InboundToolHandler
from btcp_client.exceptions import NotFoundError
from btcp_client.models.tool import ProtocolToolDefinition

logger = logging.getLogger(__name__)


class LoopbackExecutor:
    """Keeps inbound tool handlers by name and invokes them."""

    def __init__(self) -> None:
        self._handlers: dict[str, InboundToolHandler] = {}

    def register_handler(self, name: str, handler: InboundToolHandler) -> None:
        self._handlers[name] = handler

    def unregister_handler(self, name: str) -> bool:
        return self._handlers.pop(name, None) is not None

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    async def execute(self, name: str, params: Any, call_id: str) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            raise NotFoundError(name)
        return await handler(params, call_id)


class LoopbackCoreClient:
    """Core client that keeps the session in-process.

    Failures can be injected by setting ``connect_error``,
    ``disconnect_error`` or ``register_error`` to an exception instance.
    """

    def __init__(self, config: CoreClientConfig | None = None) -> None:
        self.config = config or CoreClientConfig(server_url="loopback://local")
        self._connected = False
        self._session_id: str | None = self.config.session_id
        self._listeners: dict[str, list[Callable[[Any], Any]]] = {}
        self._executor = LoopbackExecutor()
        self.register_calls: list[list[ProtocolToolDefinition]] = []
        self.connect_error: BaseException | None = None
        self.disconnect_error: BaseException | None = None
        self.register_error: BaseException | None = None

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        if self._session_id is None:
            self._session_id = f"session-{uuid4().hex[:12]}"
        self._connected = True
        logger.debug(f"Loopback session {self._session_id} connected")
        self._emit("connect", {"session_id": self._session_id})

    async def disconnect(self) -> None:
        if self.disconnect_error is not None:
            raise self.disconnect_error
        was_connected = self._connected
        self._connected = False
        if was_connected:
            self._emit("disconnect", {"reason": "client disconnect", "code": 1000})

    def is_connected(self) -> bool:
        return self._connected

    def get_session_id(self) -> str | None:
        return self._session_id

    async def register_tools(self, tools: list[ProtocolToolDefinition]) -> None:
        if self.register_error is not None:
            raise self.register_error
        if not self._connected:
            raise ConnectionError("Loopback session is not connected")
        self.register_calls.append(list(tools))
        logger.debug(f"Loopback registered {len(tools)} tools: {[t.name for t in tools]}")

    @property
    def registered_tools(self) -> list[ProtocolToolDefinition]:
        """The most recent tool list the session received."""
        return list(self.register_calls[-1]) if self.register_calls else []

    def on(self, event: str, handler: Callable[[Any], Any]) -> Callable[[], None]:
        if event not in CORE_EVENTS:
            raise ValueError(f"Unknown core event '{event}'")
        self._listeners.setdefault(event, []).append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: str, handler: Callable[[Any], Any]) -> None:
        try:
            self._listeners.get(event, []).remove(handler)
        except ValueError:
            pass

    def get_executor(self) -> LoopbackExecutor:
        return self._executor

    # Session simulation

    def simulate_disconnect(self, reason: str = "connection lost", code: int | None = 1006) -> None:
        self._connected = False
        self._emit("disconnect", {"reason": reason, "code": code})

    def simulate_reconnect_attempt(self, attempt: int = 1) -> None:
        self._connected = False
        self._emit("reconnect", {"attempt": attempt})

    def simulate_reconnected(self) -> None:
        self._connected = True
        self._emit("connect", {"session_id": self._session_id})

    def simulate_error(self, error: BaseException, context: str | None = None) -> None:
        self._emit("error", {"error": error, "context": context})

    def simulate_message(self, message: Any) -> None:
        self._emit("message", message)

    async def dispatch_tool_call(
        self,
        name: str,
        params: Any = None,
        call_id: str | None = None,
    ) -> Any:
        """Deliver an inbound tool call as the remote agent would.

        Returns the handler result; handler failures propagate.
        """
        call_id = call_id or uuid4().hex
        self._emit("tool:call", {"name": name, "params": params, "id": call_id})
        return await self._executor.execute(name, params, call_id)

    def _emit(self, event: str, payload: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Error in core listener for '{event}'")
