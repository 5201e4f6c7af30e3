"""Capability-based security for tool registration."""

from btcp_client.security.capabilities import (
    ALL_CAPABILITIES,
    Capability,
    CapabilityCheckResult,
    CapabilityManager,
    unknown_capabilities,
)

# Alias matching the protocol's constant table
CAPABILITIES = Capability

__all__ = [
    "ALL_CAPABILITIES",
    "CAPABILITIES",
    "Capability",
    "CapabilityCheckResult",
    "CapabilityManager",
    "unknown_capabilities",
]
