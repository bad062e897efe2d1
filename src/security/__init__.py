"""Security module — permission catalog, authorization guard, audit trail."""

from src.security.audit import SqlAuditTrail
from src.security.guard import Actor, AuthorizationGuard
from src.security.permissions import Permission, PermissionCatalog, default_catalog

__all__ = [
    "Actor",
    "AuthorizationGuard",
    "Permission",
    "PermissionCatalog",
    "SqlAuditTrail",
    "default_catalog",
]
