"""Tool registry and activity tracking."""

from btcp_client.tools.registry import ToolRegistry, coerce_tool_definition
from btcp_client.tools.tracking import ToolActivityTracker, ToolCallRecord, ToolResultRecord

__all__ = [
    "ToolActivityTracker",
    "ToolCallRecord",
    "ToolRegistry",
    "ToolResultRecord",
    "coerce_tool_definition",
]
