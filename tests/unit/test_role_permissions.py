import pytest

from atacado.utils.role_permissions import (
    ROLE_PERMISSIONS,
    get_allowed_roles,
    get_role_permissions,
    permissions_for_role,
    role_allows_manage,
    role_allows_write,
    validate_role,
)


class TestRolePermissions:
    @pytest.mark.parametrize("role,can_write", [("owner", True), ("admin", True), ("editor", True), ("viewer", False)])
    def test_defaults(self, role, can_write):
        permissions = get_role_permissions(role)
        assert permissions == {"can_read": True, "can_write": can_write}

    def test_unknown_role(self):
        with pytest.raises(ValueError, match="Unknown role: cashier"):
            get_role_permissions("cashier")

    def test_returns_copy(self):
        permissions = get_role_permissions("owner")
        permissions["can_write"] = False
        assert ROLE_PERMISSIONS["owner"]["can_write"] is True

    def test_validate_role(self):
        validate_role("viewer")
        with pytest.raises(ValueError):
            validate_role("root")

    def test_allowed_roles(self):
        assert get_allowed_roles() == {"owner", "admin", "editor", "viewer"}

    def test_overrides(self):
        assert permissions_for_role("viewer", can_write=True) == {"can_read": True, "can_write": True}

    def test_write_and_manage_sets(self):
        assert role_allows_write("editor") and not role_allows_manage("editor")
        assert role_allows_manage("admin") and role_allows_manage("owner")
        assert not role_allows_write("viewer")
