"""Pydantic models for the BTCP client - the contracts."""

from btcp_client.models.events import (
    ClientEvent,
    ConnectEvent,
    ConnectionStatus,
    DisconnectEvent,
    ErrorEvent,
    ReconnectEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from btcp_client.models.tool import ProtocolToolDefinition, ToolDefinition

__all__ = [
    "ClientEvent",
    "ConnectEvent",
    "ConnectionStatus",
    "DisconnectEvent",
    "ErrorEvent",
    "ProtocolToolDefinition",
    "ReconnectEvent",
    "ToolCallEvent",
    "ToolDefinition",
    "ToolResultEvent",
]
