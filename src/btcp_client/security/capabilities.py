"""Capability grants for tool registration."""

import logging
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """Standard BTCP capability tokens."""

    DOM_READ = "dom:read"
    DOM_WRITE = "dom:write"
    STORAGE_READ = "storage:read"
    STORAGE_WRITE = "storage:write"
    NETWORK_FETCH = "network:fetch"
    CLIPBOARD_READ = "clipboard:read"
    CLIPBOARD_WRITE = "clipboard:write"


ALL_CAPABILITIES: tuple[str, ...] = tuple(c.value for c in Capability)

_KNOWN = frozenset(ALL_CAPABILITIES)


def _token(capability: str | Capability) -> str:
    return capability.value if isinstance(capability, Capability) else capability


def unknown_capabilities(capabilities: Iterable[str | Capability]) -> list[str]:
    """Return tokens outside the standard vocabulary, in input order."""
    return [t for t in map(_token, capabilities) if t not in _KNOWN]


class CapabilityCheckResult(BaseModel):
    """Outcome of checking a list of required capabilities."""

    allowed: bool
    missing: list[str] = Field(default_factory=list)


class CapabilityManager:
    """Holds the set of capabilities granted to one client.

    Tokens are opaque strings. There is no hierarchy (``dom:*`` does not
    imply ``dom:read``), and tokens outside the standard vocabulary are
    accepted but only satisfied when explicitly granted.
    """

    def __init__(
        self,
        capabilities: Iterable[str | Capability] | None = None,
        defaults: Iterable[str | Capability] = ALL_CAPABILITIES,
    ) -> None:
        """Initialize the manager.

        Args:
            capabilities: Initial grants. None grants the full default set.
            defaults: The set restored by reset()
        """
        self._defaults: tuple[str, ...] = tuple(_token(c) for c in defaults)
        initial = self._defaults if capabilities is None else capabilities
        self._granted: set[str] = {_token(c) for c in initial}

    def grant(self, capability: str | Capability) -> None:
        self._granted.add(_token(capability))

    def grant_all(self, capabilities: Iterable[str | Capability]) -> None:
        for capability in capabilities:
            self.grant(capability)

    def revoke(self, capability: str | Capability) -> None:
        self._granted.discard(_token(capability))

    def revoke_all(self, capabilities: Iterable[str | Capability]) -> None:
        for capability in capabilities:
            self.revoke(capability)

    def has(self, capability: str | Capability) -> bool:
        return _token(capability) in self._granted

    def check(self, required: Iterable[str | Capability]) -> CapabilityCheckResult:
        """Check whether every required capability is granted.

        Args:
            required: Capabilities a tool needs

        Returns:
            CapabilityCheckResult with the missing tokens in the order given
        """
        missing = [t for t in map(_token, required) if t not in self._granted]
        return CapabilityCheckResult(allowed=not missing, missing=missing)

    def list_granted(self) -> list[str]:
        """Granted tokens, standard vocabulary first in declaration order."""
        known = [c for c in ALL_CAPABILITIES if c in self._granted]
        extra = sorted(self._granted - _KNOWN)
        return known + extra

    def clear(self) -> None:
        self._granted.clear()

    def reset(self) -> None:
        """Restore the default grant set."""
        self._granted = set(self._defaults)
        logger.debug(f"Capabilities reset to defaults: {list(self._defaults)}")

    @property
    def size(self) -> int:
        return len(self._granted)

    def __len__(self) -> int:
        return len(self._granted)

    def __contains__(self, capability: object) -> bool:
        if not isinstance(capability, str):
            return False
        return self.has(capability)
