"""Tests for CapabilityManager: grants, revocation and admission checks."""

import pytest

from btcp_client.security import (
    ALL_CAPABILITIES,
    CAPABILITIES,
    Capability,
    CapabilityCheckResult,
    CapabilityManager,
    unknown_capabilities,
)


@pytest.fixture
def manager():
    """Manager with the default (full) grant set."""
    return CapabilityManager()


# ---------------------------------------------------------------------------
# TestDefaults
# ---------------------------------------------------------------------------

class TestDefaults:
    """Verify the initial grant set."""

    def test_default_grants_every_standard_capability(self, manager):
        assert manager.size == len(ALL_CAPABILITIES) == 7
        for cap in ALL_CAPABILITIES:
            assert manager.has(cap)

    def test_vocabulary(self):
        assert set(ALL_CAPABILITIES) == {
            "dom:read",
            "dom:write",
            "storage:read",
            "storage:write",
            "network:fetch",
            "clipboard:read",
            "clipboard:write",
        }
        assert CAPABILITIES.DOM_WRITE == "dom:write"

    def test_explicit_initial_set(self):
        manager = CapabilityManager(["dom:read"])
        assert manager.list_granted() == ["dom:read"]

    def test_empty_initial_set_grants_nothing(self):
        manager = CapabilityManager([])
        assert manager.size == 0


# ---------------------------------------------------------------------------
# TestGrantRevoke
# ---------------------------------------------------------------------------

class TestGrantRevoke:
    """Verify grant/revoke idempotence and enum handling."""

    def test_grant_is_idempotent(self):
        manager = CapabilityManager([])
        manager.grant("dom:read")
        manager.grant("dom:read")
        assert manager.size == 1

    def test_grant_all(self):
        manager = CapabilityManager([])
        manager.grant_all(["dom:read", Capability.NETWORK_FETCH])
        assert manager.has("network:fetch")
        assert manager.has(Capability.DOM_READ)

    def test_revoke_ungranted_is_noop(self, manager):
        manager.revoke("not:granted")
        assert manager.size == len(ALL_CAPABILITIES)

    def test_revoke_all(self, manager):
        manager.revoke_all([Capability.DOM_WRITE, "storage:write"])
        assert not manager.has("dom:write")
        assert not manager.has("storage:write")
        assert manager.has("dom:read")

    def test_contains_and_len(self, manager):
        assert "dom:read" in manager
        assert 42 not in manager
        assert len(manager) == manager.size


# ---------------------------------------------------------------------------
# TestCheck
# ---------------------------------------------------------------------------

class TestCheck:
    """Verify admission checks."""

    def test_empty_requirements_always_allowed(self):
        result = CapabilityManager([]).check([])
        assert result == CapabilityCheckResult(allowed=True, missing=[])

    def test_revoked_capability_is_missing(self, manager):
        manager.revoke("dom:write")
        result = manager.check(["dom:write"])
        assert result.allowed is False
        assert result.missing == ["dom:write"]

    def test_missing_preserves_required_order(self):
        manager = CapabilityManager(["dom:read"])
        result = manager.check(["storage:write", "dom:read", "clipboard:read", "dom:write"])
        assert result.missing == ["storage:write", "clipboard:read", "dom:write"]

    def test_unknown_token_never_satisfied_unless_granted(self, manager):
        assert manager.check(["camera:use"]).missing == ["camera:use"]
        manager.grant("camera:use")
        assert manager.check(["camera:use"]).allowed is True

    def test_no_hierarchy(self):
        manager = CapabilityManager(["dom:*"])
        assert manager.check(["dom:read"]).allowed is False


# ---------------------------------------------------------------------------
# TestListClearReset
# ---------------------------------------------------------------------------

class TestListClearReset:

    def test_list_granted_orders_standard_first(self):
        manager = CapabilityManager(["zzz:custom", "dom:write", "dom:read"])
        assert manager.list_granted() == ["dom:read", "dom:write", "zzz:custom"]

    def test_clear(self, manager):
        manager.clear()
        assert manager.size == 0
        assert manager.check(["dom:read"]).allowed is False

    def test_reset_restores_full_set(self):
        manager = CapabilityManager(["dom:read"])
        manager.clear()
        manager.reset()
        assert sorted(manager.list_granted()) == sorted(ALL_CAPABILITIES)

    def test_unknown_capabilities_helper(self):
        assert unknown_capabilities(["dom:read", "camera:use", Capability.DOM_WRITE]) == ["camera:use"]
