"""Core client contract and the in-process loopback implementation."""

from btcp_client.core.base import (
    CoreClient,
    CoreClientConfig,
    CoreClientFactory,
    InboundToolHandler,
    ToolExecutor,
)
from btcp_client.core.loopback import LoopbackCoreClient, LoopbackExecutor

__all__ = [
    "CoreClient",
    "CoreClientConfig",
    "CoreClientFactory",
    "InboundToolHandler",
    "LoopbackCoreClient",
    "LoopbackExecutor",
    "ToolExecutor",
]
