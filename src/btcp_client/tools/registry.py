"""Tool registry: local tool definitions, their handlers and the protocol view."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Mapping

import pydantic

from btcp_client.exceptions import NotFoundError, ValidationError
from btcp_client.models.tool import ProtocolToolDefinition, ToolDefinition

logger = logging.getLogger(__name__)


def coerce_tool_definition(definition: ToolDefinition | Mapping[str, Any]) -> ToolDefinition:
    """Validate a tool definition, accepting either a model or a plain mapping.

    Raises:
        ValidationError: name or description is empty, or handler is not callable
    """
    if isinstance(definition, ToolDefinition):
        tool = definition
    elif isinstance(definition, Mapping):
        _check_required_fields(definition.get("name"), definition.get("description"),
                               definition.get("handler"))
        try:
            tool = ToolDefinition.model_validate(dict(definition))
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid tool definition: {e}", tool_name=definition.get("name")
            ) from e
    else:
        raise ValidationError(
            f"Tool definition must be a ToolDefinition or mapping, got {type(definition).__name__}"
        )

    # Catches instances built with model_construct()
    _check_required_fields(tool.name, tool.description, tool.handler)
    return tool


def _check_required_fields(name: Any, description: Any, handler: Any) -> None:
    if not name or not isinstance(name, str):
        raise ValidationError("Tool name is required")
    if not description or not isinstance(description, str):
        raise ValidationError("Tool description is required", tool_name=name)
    if not callable(handler):
        raise ValidationError("Tool handler must be callable", tool_name=name)


class ToolRegistry:
    """Maps tool names to their definitions, in registration order.

    Registering a name again replaces the definition and moves it to the end
    of the listing. Registering an identical definition changes nothing.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._revision = 0

    def register(self, definition: ToolDefinition | Mapping[str, Any]) -> ToolDefinition:
        """Register a tool definition.

        Args:
            definition: The tool to register

        Returns:
            The stored ToolDefinition

        Raises:
            ValidationError: If the definition is malformed
        """
        tool = coerce_tool_definition(definition)

        existing = self._tools.get(tool.name)
        if existing is not None:
            if existing == tool:
                return existing
            logger.warning(f"Tool '{tool.name}' is being overwritten")
            del self._tools[tool.name]

        self._tools[tool.name] = tool
        self._revision += 1
        return tool

    def unregister(self, name: str) -> bool:
        """Remove a tool.

        Returns:
            True if the tool was found and removed
        """
        if name in self._tools:
            del self._tools[name]
            self._revision += 1
            return True
        return False

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def has(self, name: str) -> bool:
        return name in self._tools

    def clear(self) -> None:
        if self._tools:
            self._tools.clear()
            self._revision += 1

    @property
    def size(self) -> int:
        return len(self._tools)

    @property
    def revision(self) -> int:
        """Counter bumped on every effective mutation."""
        return self._revision

    def to_protocol_format(self) -> list[ProtocolToolDefinition]:
        """Handler-free view of every tool, in registration order."""
        return [tool.to_protocol() for tool in self._tools.values()]

    async def execute(self, name: str, params: Any) -> Any:
        """Invoke a tool's handler.

        Capabilities are not checked here; they are enforced when the tool
        is registered.

        Raises:
            NotFoundError: If no tool is registered under ``name``
        """
        tool = self._tools.get(name)
        if tool is None:
            raise NotFoundError(name)

        result = tool.handler(params)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
