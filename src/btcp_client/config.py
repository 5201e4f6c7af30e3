"""Client options, loadable from keyword arguments or BTCP_* environment variables."""

import logging
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from btcp_client.core.base import CoreClientConfig
from btcp_client.security.capabilities import unknown_capabilities

logger = logging.getLogger(__name__)


class BasicCredentials(BaseModel):
    username: str
    password: str


class AuthConfig(BaseModel):
    """Authentication settings passed through to the core client."""

    type: Literal["bearer", "basic", "custom"]
    token: str | None = None
    credentials: BasicCredentials | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_type_fields(self) -> "AuthConfig":
        if self.type == "bearer" and not self.token:
            raise ValueError("bearer auth requires a token")
        if self.type == "basic" and self.credentials is None:
            raise ValueError("basic auth requires credentials")
        return self


class ClientOptions(BaseSettings):
    """Options for creating a BTCP client.

    Explicit arguments win over BTCP_* environment variables and .env.
    Times are in milliseconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="BTCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    server_url: str = Field(min_length=1)
    session_id: str | None = None
    auto_reconnect: bool = True
    reconnect_delay: int = Field(default=1000, ge=0)
    max_reconnect_attempts: int = Field(default=5, ge=0)
    connection_timeout: int = Field(default=10000, ge=0)
    debug: bool = False
    auth: AuthConfig | None = None

    # None grants every standard capability
    capabilities: list[str] | None = None

    @field_validator("capabilities", mode="before")
    @classmethod
    def _capabilities_as_strings(cls, value: Any) -> Any:
        if value is None:
            return None
        return [v.value if isinstance(v, Enum) else v for v in value]

    @model_validator(mode="after")
    def _warn_unknown_capabilities(self) -> "ClientOptions":
        if self.capabilities:
            unknown = unknown_capabilities(self.capabilities)
            if unknown:
                logger.warning(
                    f"Unrecognized capabilities granted: {unknown}. "
                    f"They only satisfy tools that require them verbatim."
                )
        return self

    def core_config(self) -> CoreClientConfig:
        """The transport-facing subset of these options."""
        return CoreClientConfig(
            server_url=self.server_url,
            session_id=self.session_id,
            auto_reconnect=self.auto_reconnect,
            reconnect_delay=self.reconnect_delay,
            max_reconnect_attempts=self.max_reconnect_attempts,
            connection_timeout=self.connection_timeout,
            debug=self.debug,
            auth=self.auth.model_dump(exclude_none=True) if self.auth else None,
        )
