"""Connection status, event names and event payload models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ConnectionStatus(str, Enum):
    """Client-side connection status.

    Tracked by the client itself; the core client's own status is only
    consulted, never trusted on its own.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class ClientEvent(str, Enum):
    """Events a client emits to its subscribers."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    RECONNECT = "reconnect"
    ERROR = "error"
    TOOL_CALL = "tool:call"
    TOOL_RESULT = "tool:result"
    MESSAGE = "message"


# Error event contexts for background syncs
SYNC_CONTEXT = "sync"
REGISTRATION_SYNC_CONTEXT = "tool-registration-sync"
UNREGISTRATION_SYNC_CONTEXT = "tool-unregistration-sync"
CONNECT_CONTEXT = "connect"

MANUAL_DISCONNECT_REASON = "manual"
NORMAL_CLOSURE_CODE = 1000


def tool_context(name: str) -> str:
    """Error context used for failures inside a tool handler."""
    return f"tool:{name}"


class ConnectEvent(BaseModel):
    session_id: str = ""


class DisconnectEvent(BaseModel):
    reason: str
    code: int | None = None


class ReconnectEvent(BaseModel):
    attempt: int


class ErrorEvent(BaseModel):
    """An error surfaced through the event channel."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: BaseException
    context: str | None = None


class ToolCallEvent(BaseModel):
    name: str
    params: Any = None
    id: str = ""


class ToolResultEvent(BaseModel):
    name: str
    result: Any = None
    id: str = ""
