"""Custom exceptions for the BTCP client."""

import builtins


class BTCPError(Exception):
    """Base class for all BTCP client errors."""


class ValidationError(BTCPError):
    """Raised when a tool definition is malformed at registration."""

    def __init__(self, message: str, tool_name: str | None = None) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class CapabilityError(BTCPError):
    """Raised when a tool requires capabilities that are not granted."""

    def __init__(self, tool_name: str, missing: list[str]) -> None:
        self.tool_name = tool_name
        self.missing = list(missing)
        super().__init__(
            f"Cannot register tool '{tool_name}': missing capabilities: "
            f"{', '.join(self.missing)}"
        )


class NotFoundError(BTCPError):
    """Raised when execution is requested for an unregistered tool."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found")


class ExecutionError(BTCPError):
    """Raised when a tool handler fails. The handler's exception is the cause."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Tool '{tool_name}' failed: {cause}")


class SyncError(BTCPError):
    """A background tool-list sync failed. Only delivered via the error event."""

    def __init__(self, context: str, cause: BaseException) -> None:
        self.context = context
        self.cause = cause
        super().__init__(f"Tool sync failed ({context}): {cause}")


class ConnectionError(BTCPError, builtins.ConnectionError):
    """Raised from connect() when the session could not be established."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)
