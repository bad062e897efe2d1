"""Permission catalog — which role holds which permissions.

The catalog is an immutable value built once at startup and handed to the
AuthorizationGuard. It never contains the top-level role's bypass: that
short-circuit lives in the guard so new permissions cannot drift out of it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from src.models.enums import Role


class Permission(str, Enum):
    """Atomic permission identifiers: `<verb>_<resource>`."""

    # Transactions
    VIEW_TRANSACTIONS = "view_transactions"
    EDIT_TRANSACTIONS = "edit_transactions"
    CANCEL_TRANSACTIONS = "cancel_transactions"
    DELETE_TRANSACTIONS = "delete_transactions"

    # Users
    VIEW_USERS = "view_users"
    EDIT_USERS = "edit_users"
    DEACTIVATE_USERS = "deactivate_users"
    VERIFY_USERS = "verify_users"

    # Data management
    VIEW_DATA = "view_data"
    EDIT_DATA = "edit_data"
    DELETE_DATA = "delete_data"

    # System
    VIEW_AUDIT_LOGS = "view_audit_logs"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_DISPUTES = "manage_disputes"

    @property
    def action(self) -> str:
        return self.value.split("_", 1)[0]

    @property
    def resource(self) -> str:
        return self.value.split("_", 1)[1]


_ADMIN_PERMISSIONS = (
    Permission.VIEW_TRANSACTIONS,
    Permission.EDIT_TRANSACTIONS,
    Permission.CANCEL_TRANSACTIONS,
    Permission.VIEW_USERS,
    Permission.EDIT_USERS,
    Permission.DEACTIVATE_USERS,
    Permission.VERIFY_USERS,
    Permission.VIEW_DATA,
    Permission.EDIT_DATA,
    Permission.VIEW_AUDIT_LOGS,
    Permission.VIEW_ANALYTICS,
    Permission.MANAGE_DISPUTES,
)

_MODERATOR_PERMISSIONS = (
    Permission.VIEW_TRANSACTIONS,
    Permission.VIEW_USERS,
    Permission.EDIT_USERS,
    Permission.VERIFY_USERS,
    Permission.VIEW_ANALYTICS,
    Permission.MANAGE_DISPUTES,
)


@dataclass(frozen=True)
class PermissionCatalog:
    """Static role → permissions table. Unknown roles hold nothing."""

    roles: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def from_roles(cls, roles: Mapping[str, Iterable[str]]) -> PermissionCatalog:
        frozen = {
            role: frozenset(permission_id(p) for p in permissions)
            for role, permissions in roles.items()
        }
        return cls(roles=MappingProxyType(frozen))

    def permissions_for(self, role: str | None) -> frozenset[str]:
        if role is None:
            return frozenset()
        return self.roles.get(role, frozenset())

    def role_has_permission(self, role: str | None, permission: str) -> bool:
        return permission_id(permission) in self.permissions_for(role)

    def known_permissions(self) -> frozenset[str]:
        """Every permission the system defines or any role references."""
        known = {p.value for p in Permission}
        for permissions in self.roles.values():
            known.update(permissions)
        return frozenset(known)


def permission_id(permission: str) -> str:
    return permission.value if isinstance(permission, Permission) else str(permission)


def default_catalog() -> PermissionCatalog:
    """Catalog used in production. Built once in the app lifespan."""
    return PermissionCatalog.from_roles({
        Role.ADMIN.value: _ADMIN_PERMISSIONS,
        Role.MODERATOR.value: _MODERATOR_PERMISSIONS,
        Role.USER.value: (),
    })
