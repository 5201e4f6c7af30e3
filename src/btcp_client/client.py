"""BTCP client: capability-gated tool registration kept in sync with the session.

Wraps a core client (transport) with:
- Inline tool handler registration
- Capability checks at registration time
- Automatic tool list synchronization on connect, reconnect and changes
- A stable event contract and its own connection status
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from btcp_client.config import ClientOptions
from btcp_client.core.base import CoreClient, CoreClientFactory, ToolExecutor
from btcp_client.events import EventEmitter, EventHandler, Unsubscribe
from btcp_client.exceptions import (
    BTCPError,
    CapabilityError,
    ConnectionError,
    ExecutionError,
    NotFoundError,
    SyncError,
)
from btcp_client.models.events import (
    CONNECT_CONTEXT,
    MANUAL_DISCONNECT_REASON,
    NORMAL_CLOSURE_CODE,
    REGISTRATION_SYNC_CONTEXT,
    SYNC_CONTEXT,
    UNREGISTRATION_SYNC_CONTEXT,
    ClientEvent,
    ConnectEvent,
    ConnectionStatus,
    DisconnectEvent,
    ErrorEvent,
    ReconnectEvent,
    ToolCallEvent,
    ToolResultEvent,
    tool_context,
)
from btcp_client.models.tool import ToolDefinition
from btcp_client.security.capabilities import CapabilityManager
from btcp_client.sync import SyncCoordinator
from btcp_client.tools.registry import ToolRegistry, coerce_tool_definition

logger = logging.getLogger(__name__)


def _field(payload: Any, key: str, default: Any = None) -> Any:
    """Read a field from a core event payload (mapping or object)."""
    if isinstance(payload, Mapping):
        return payload.get(key, default)
    return getattr(payload, key, default)


class BTCPClient:
    """Exposes local tools to a remote agent through a core client.

    The client owns its tool registry, capability grants and connection
    status. Registration never waits on the network: when connected, a
    sync of the full tool list runs in the background and reports failures
    through the ``error`` event.
    """

    def __init__(
        self,
        options: ClientOptions,
        core_factory: CoreClientFactory | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            options: Client options
            core_factory: Builds the core client from the transport settings

        Raises:
            ValueError: If no core_factory is given
        """
        self._options = options
        if options.debug:
            logging.getLogger("btcp_client").setLevel(logging.DEBUG)

        if core_factory is None:
            raise ValueError("core_factory is required to build the core client")
        self._core: CoreClient = core_factory(options.core_config())
        self._executor: ToolExecutor = self._core.get_executor()
        self._registry = ToolRegistry()
        self._capabilities = CapabilityManager(options.capabilities)
        self._events = EventEmitter()
        self._status = ConnectionStatus.DISCONNECTED

        # Bumped by connect() and disconnect(); a connect attempt whose
        # number is no longer current was overtaken and must not finish.
        self._connect_attempt = 0
        self._closing = False

        self._sync = SyncCoordinator(
            registry=self._registry,
            send=self._core.register_tools,
            is_ready=lambda: self._status is ConnectionStatus.CONNECTED,
            on_error=self._report_sync_error,
        )

        self._core_unsubscribers: list[Unsubscribe] = []
        self._setup_event_forwarding()
        self._setup_tool_call_handling()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect the core client and sync every registered tool.

        Raises:
            ConnectionError: If the core connect or the initial sync fails,
                or the attempt is overtaken by disconnect()/destroy()
        """
        if self._status is ConnectionStatus.CONNECTED:
            logger.debug("connect() called while already connected")
            return

        self._connect_attempt += 1
        attempt = self._connect_attempt
        # Drop a background sync left over from the previous session
        self._sync.cancel()
        self._set_status(ConnectionStatus.CONNECTING)

        try:
            await self._core.connect()
            self._ensure_current(attempt)
            await self._sync.sync_now()
            self._ensure_current(attempt)
        except asyncio.CancelledError:
            if self._is_current(attempt):
                self._set_status(ConnectionStatus.DISCONNECTED)
            raise
        except Exception as e:
            if self._is_current(attempt):
                self._set_status(ConnectionStatus.DISCONNECTED)
            error = e if isinstance(e, ConnectionError) else ConnectionError(
                f"Failed to connect to {self._options.server_url}: {e}", cause=e
            )
            logger.warning(str(error))
            self._events.emit(
                ClientEvent.ERROR, ErrorEvent(error=error, context=CONNECT_CONTEXT)
            )
            if error is e:
                raise
            raise error from e

        self._set_status(ConnectionStatus.CONNECTED)
        self._events.emit(ClientEvent.CONNECT, ConnectEvent(session_id=self.session_id or ""))

        # Tools changed while the initial sync was on the wire
        if self._sync.is_stale():
            self._sync.schedule(SYNC_CONTEXT)

    async def disconnect(self) -> None:
        """Disconnect from the session.

        Always ends ``disconnected``; core disconnect failures are logged
        and swallowed.
        """
        self._connect_attempt += 1
        self._sync.cancel()
        self._closing = True
        try:
            await self._core.disconnect()
        except Exception as e:
            logger.warning(f"Core disconnect failed, marking disconnected anyway: {e}")
        finally:
            self._closing = False
            self._set_status(ConnectionStatus.DISCONNECTED)
            self._events.emit(
                ClientEvent.DISCONNECT,
                DisconnectEvent(reason=MANUAL_DISCONNECT_REASON, code=NORMAL_CLOSURE_CODE),
            )

    async def destroy(self) -> None:
        """Tear the client down: disconnect, then clear tools, grants and subscriptions."""
        await self.disconnect()
        self._sync.cancel()
        for tool in self._registry.list():
            self._executor.unregister_handler(tool.name)
        self._registry.clear()
        self._capabilities.clear()
        self._events.clear()
        for unsubscribe in self._core_unsubscribers:
            unsubscribe()
        self._core_unsubscribers.clear()
        logger.debug("Client destroyed")

    async def wait_for_sync(self) -> None:
        """Wait for any background tool sync to finish."""
        await self._sync.wait()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status is ConnectionStatus.CONNECTED and self._core.is_connected()

    @property
    def session_id(self) -> str | None:
        return self._core.get_session_id()

    @property
    def options(self) -> ClientOptions:
        return self._options

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def register_tool(self, definition: ToolDefinition | Mapping[str, Any]) -> ToolDefinition:
        """Register a tool and its handler.

        Returns immediately; when connected, the updated tool list is sent
        in the background.

        Raises:
            ValidationError: If the definition is malformed
            CapabilityError: If a required capability is not granted. The
                registry is left untouched.
        """
        tool = coerce_tool_definition(definition)

        if tool.capabilities:
            check = self._capabilities.check(tool.capabilities)
            if not check.allowed:
                logger.warning(
                    f"Rejected tool '{tool.name}': missing capabilities {check.missing}"
                )
                raise CapabilityError(tool.name, check.missing)

        revision = self._registry.revision
        stored = self._registry.register(tool)
        self._executor.register_handler(tool.name, self._make_inbound_handler(tool.name))

        if self._registry.revision != revision and self._status is ConnectionStatus.CONNECTED:
            self._sync.schedule(REGISTRATION_SYNC_CONTEXT)
        return stored

    def unregister_tool(self, name: str) -> bool:
        """Remove a tool.

        Returns:
            True if the tool was registered
        """
        removed = self._registry.unregister(name)
        if not removed:
            return False

        self._executor.unregister_handler(name)
        if self._status is ConnectionStatus.CONNECTED:
            self._sync.schedule(UNREGISTRATION_SYNC_CONTEXT)
        return True

    def list_tools(self) -> list[ToolDefinition]:
        return self._registry.list()

    def has_tool(self, name: str) -> bool:
        return self._registry.has(name)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: ClientEvent | str, handler: EventHandler) -> Unsubscribe:
        return self._events.on(event, handler)

    def off(self, event: ClientEvent | str, handler: EventHandler) -> None:
        self._events.off(event, handler)

    def once(self, event: ClientEvent | str, handler: EventHandler) -> Unsubscribe:
        return self._events.once(event, handler)

    # ------------------------------------------------------------------
    # Escape hatches
    # ------------------------------------------------------------------

    @property
    def core_client(self) -> CoreClient:
        return self._core

    @property
    def tool_executor(self) -> ToolExecutor:
        return self._executor

    @property
    def capability_manager(self) -> CapabilityManager:
        return self._capabilities

    @property
    def tool_registry(self) -> ToolRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_status(self, status: ConnectionStatus) -> None:
        if status is not self._status:
            logger.debug(f"Status {self._status.value} -> {status.value}")
            self._status = status

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._connect_attempt and self._status is ConnectionStatus.CONNECTING

    def _ensure_current(self, attempt: int) -> None:
        if not self._is_current(attempt):
            raise ConnectionError("Connection attempt was aborted by disconnect")

    def _report_sync_error(self, error: SyncError) -> None:
        self._events.emit(ClientEvent.ERROR, ErrorEvent(error=error, context=error.context))

    def _make_inbound_handler(self, name: str):
        """Build the executor handler for a tool.

        The tool is looked up at call time, so a re-registration takes
        effect for the next call.
        """

        async def handle(params: Any, call_id: str = "") -> Any:
            try:
                result = await self._registry.execute(name, params)
            except NotFoundError as e:
                self._events.emit(ClientEvent.ERROR, ErrorEvent(error=e, context=tool_context(name)))
                raise
            except Exception as e:
                error = ExecutionError(name, e)
                logger.warning(str(error))
                self._events.emit(
                    ClientEvent.ERROR, ErrorEvent(error=error, context=tool_context(name))
                )
                raise error from e

            self._events.emit(
                ClientEvent.TOOL_RESULT,
                ToolResultEvent(name=name, result=result, id=call_id or ""),
            )
            return result

        return handle

    def _listen(self, event: str, handler: EventHandler) -> None:
        self._core_unsubscribers.append(self._core.on(event, handler))

    def _setup_event_forwarding(self) -> None:
        self._listen("connect", self._on_core_connect)
        self._listen("disconnect", self._on_core_disconnect)
        self._listen("reconnect", self._on_core_reconnect)
        self._listen("error", self._on_core_error)
        self._listen("message", self._on_core_message)

    def _setup_tool_call_handling(self) -> None:
        self._listen("tool:call", self._on_core_tool_call)

    def _on_core_connect(self, payload: Any = None) -> None:
        # connect() drives the connecting -> connected transition itself
        if self._status is not ConnectionStatus.RECONNECTING:
            logger.debug(f"Core connect while {self._status.value}; ignored")
            return

        self._set_status(ConnectionStatus.CONNECTED)
        self._events.emit(ClientEvent.CONNECT, ConnectEvent(session_id=self.session_id or ""))
        self._sync.schedule(SYNC_CONTEXT)

    def _on_core_disconnect(self, payload: Any = None) -> None:
        if self._closing:
            return
        if self._status not in (ConnectionStatus.CONNECTED, ConnectionStatus.RECONNECTING):
            logger.debug(f"Core disconnect while {self._status.value}; ignored")
            return

        self._set_status(ConnectionStatus.DISCONNECTED)
        self._sync.cancel()
        self._events.emit(
            ClientEvent.DISCONNECT,
            DisconnectEvent(
                reason=str(_field(payload, "reason", "unknown")),
                code=_field(payload, "code"),
            ),
        )

    def _on_core_reconnect(self, payload: Any = None) -> None:
        if self._status not in (ConnectionStatus.CONNECTED, ConnectionStatus.RECONNECTING):
            logger.debug(f"Core reconnect while {self._status.value}; ignored")
            return

        self._set_status(ConnectionStatus.RECONNECTING)
        self._events.emit(
            ClientEvent.RECONNECT, ReconnectEvent(attempt=int(_field(payload, "attempt") or 0))
        )

    def _on_core_error(self, payload: Any = None) -> None:
        error = _field(payload, "error")
        if not isinstance(error, BaseException):
            error = BTCPError(str(error if error is not None else payload))
        self._events.emit(
            ClientEvent.ERROR, ErrorEvent(error=error, context=_field(payload, "context"))
        )

    def _on_core_message(self, payload: Any = None) -> None:
        self._events.emit(ClientEvent.MESSAGE, payload)

    def _on_core_tool_call(self, payload: Any = None) -> None:
        name = _field(payload, "name")
        if not name:
            logger.warning(f"Dropping tool:call event without a tool name: {payload!r}")
            return
        self._events.emit(
            ClientEvent.TOOL_CALL,
            ToolCallEvent(
                name=str(name),
                params=_field(payload, "params"),
                id=str(_field(payload, "id", "") or ""),
            ),
        )
