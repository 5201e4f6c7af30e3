"""BTCP client - expose capability-gated tools to a remote agent."""

__version__ = "0.1.0"

from typing import Any, Mapping

from btcp_client.client import BTCPClient
from btcp_client.config import AuthConfig, BasicCredentials, ClientOptions
from btcp_client.core import (
    CoreClient,
    CoreClientConfig,
    CoreClientFactory,
    LoopbackCoreClient,
    ToolExecutor,
)
from btcp_client.events import EventEmitter
from btcp_client.exceptions import (
    BTCPError,
    CapabilityError,
    ConnectionError,
    ExecutionError,
    NotFoundError,
    SyncError,
    ValidationError,
)
from btcp_client.models import (
    ClientEvent,
    ConnectEvent,
    ConnectionStatus,
    DisconnectEvent,
    ErrorEvent,
    ProtocolToolDefinition,
    ReconnectEvent,
    ToolCallEvent,
    ToolDefinition,
    ToolResultEvent,
)
from btcp_client.security import (
    ALL_CAPABILITIES,
    CAPABILITIES,
    Capability,
    CapabilityCheckResult,
    CapabilityManager,
)
from btcp_client.tools import ToolActivityTracker, ToolRegistry


def create_client(
    options: ClientOptions | Mapping[str, Any] | None = None,
    *,
    core_factory: CoreClientFactory | None = None,
    **overrides: Any,
) -> BTCPClient:
    """Create a BTCP client.

    Example:
        client = create_client(
            server_url="https://btcp.example.com",
            core_factory=MyTransportClient,
        )
        client.register_tool({
            "name": "get_page_title",
            "description": "Returns the current page title",
            "handler": lambda params: "Home",
        })
        await client.connect()

    Args:
        options: ClientOptions, or a mapping of option values
        core_factory: Builds the core client from its transport settings
        **overrides: Option values applied on top of ``options``

    Raises:
        ValueError: If no core_factory is given
    """
    if options is None:
        resolved = ClientOptions(**overrides)
    elif isinstance(options, ClientOptions):
        resolved = ClientOptions(**{**options.model_dump(), **overrides}) if overrides else options
    else:
        resolved = ClientOptions(**{**dict(options), **overrides})
    return BTCPClient(resolved, core_factory=core_factory)


__all__ = [
    "__version__",
    "ALL_CAPABILITIES",
    "AuthConfig",
    "BasicCredentials",
    "BTCPClient",
    "BTCPError",
    "CAPABILITIES",
    "Capability",
    "CapabilityCheckResult",
    "CapabilityError",
    "CapabilityManager",
    "ClientEvent",
    "ClientOptions",
    "ConnectEvent",
    "ConnectionError",
    "ConnectionStatus",
    "CoreClient",
    "CoreClientConfig",
    "create_client",
    "DisconnectEvent",
    "ErrorEvent",
    "EventEmitter",
    "ExecutionError",
    "LoopbackCoreClient",
    "NotFoundError",
    "ProtocolToolDefinition",
    "ReconnectEvent",
    "SyncError",
    "ToolActivityTracker",
    "ToolCallEvent",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResultEvent",
    "ValidationError",
]
