"""Tool definition models: the local form with a handler and the protocol view."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_tokens(value: Any) -> Any:
    """Turn Capability members into their plain string values."""
    if value is None:
        return None
    if isinstance(value, (str, Enum)):
        value = [value]
    return [v.value if isinstance(v, Enum) else v for v in value]


class ProtocolToolDefinition(BaseModel):
    """Handler-free tool description transmitted to the remote session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")
    capabilities: list[str] | None = None
    version: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump using protocol field names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolDefinition(BaseModel):
    """A tool exposed to the remote agent, together with its handler.

    The handler receives the call parameters and may return a value or an
    awaitable. Definitions are frozen; replacing one means registering a new
    definition under the same name.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    handler: Callable[..., Any]
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")
    capabilities: list[str] | None = None
    version: str | None = None

    @field_validator("capabilities", mode="before")
    @classmethod
    def _capabilities_as_strings(cls, value: Any) -> Any:
        return _normalize_tokens(value)

    def to_protocol(self) -> ProtocolToolDefinition:
        """Project this definition onto its protocol view (drops the handler)."""
        return ProtocolToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
            capabilities=list(self.capabilities) if self.capabilities is not None else None,
            version=self.version,
        )
