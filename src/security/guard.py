"""Authorization guard — allow/deny decisions for admin actions.

Resolves the actor's role through an ActorDirectory, then consults the
PermissionCatalog. The top-level role short-circuits to allow. Anything
that goes wrong while resolving the actor yields deny, never allow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from src.admin.errors import AuthorizationError
from src.models.enums import LOCKED_STATUSES, ROLE_RANK
from src.security.permissions import PermissionCatalog, permission_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Identity performing a request. Built per request, never persisted."""

    id: str
    role: str | None
    status: str | None = None

    @property
    def rank(self) -> int:
        return ROLE_RANK.get(self.role or "", -1)


@dataclass(frozen=True)
class AccessDecision:
    """Result of an authorization check."""

    actor_id: str
    permission: str
    granted: bool
    role: str | None = None
    reason: str = ""


class ActorDirectory(Protocol):
    """Looks up an actor's role. Returns None for unknown ids."""

    async def lookup(self, actor_id: str) -> Actor | None: ...


class AuthorizationGuard:
    """Decides whether an actor may exercise a permission."""

    def __init__(
        self,
        catalog: PermissionCatalog,
        directory: ActorDirectory,
        top_level_role: str = "admin",
    ) -> None:
        self.catalog = catalog
        self.directory = directory
        self.top_level_role = top_level_role

    def is_top_level(self, actor: Actor) -> bool:
        return actor.role == self.top_level_role

    async def resolve_actor(self, actor_id: str) -> Actor | None:
        """Look the actor up. Lookup failures resolve to None (fail closed)."""
        if not actor_id:
            return None
        try:
            return await self.directory.lookup(actor_id)
        except Exception:
            logger.exception("Actor lookup failed for %s, denying", actor_id)
            return None

    def decide(self, actor: Actor | None, actor_id: str, permission: str) -> AccessDecision:
        """Pure decision over an already-resolved actor."""
        permission = permission_id(permission)
        if actor is None:
            return AccessDecision(actor_id, permission, granted=False, reason="unknown actor")
        if actor.status in LOCKED_STATUSES:
            return AccessDecision(
                actor_id, permission, granted=False, role=actor.role, reason=f"account {actor.status}"
            )
        if self.is_top_level(actor):
            return AccessDecision(actor_id, permission, granted=True, role=actor.role, reason="top-level role")
        if self.catalog.role_has_permission(actor.role, permission):
            return AccessDecision(actor_id, permission, granted=True, role=actor.role, reason="catalog")
        return AccessDecision(
            actor_id, permission, granted=False, role=actor.role, reason="permission not in role"
        )

    async def authorize(self, actor_id: str, permission: str) -> AccessDecision:
        actor = await self.resolve_actor(actor_id)
        return self.decide(actor, actor_id, permission)

    async def require_permission(self, actor_id: str, permission: str) -> Actor:
        """Return the resolved actor, or raise AuthorizationError.

        Denials are logged for operational visibility; they never reach the
        audit ledger, which only records actions that were performed.
        """
        actor = await self.resolve_actor(actor_id)
        decision = self.decide(actor, actor_id, permission)
        if not decision.granted or actor is None:
            logger.warning(
                "Actor %s attempted to access %s without permission (%s)",
                actor_id,
                decision.permission,
                decision.reason,
            )
            raise AuthorizationError(f"Insufficient permissions: {decision.permission}")
        return actor

    async def require_actor(self, actor_id: str) -> Actor:
        """Resolve an actor for non-admin (party) actions."""
        actor = await self.resolve_actor(actor_id)
        if actor is None or actor.status in LOCKED_STATUSES:
            logger.warning("Actor %s is unknown or locked, denying", actor_id)
            raise AuthorizationError("Unknown or locked account")
        return actor

    async def permissions_of(self, actor_id: str) -> frozenset[str]:
        """Effective permissions of an actor. Empty when the lookup fails."""
        actor = await self.resolve_actor(actor_id)
        if actor is None or actor.status in LOCKED_STATUSES:
            return frozenset()
        if self.is_top_level(actor):
            return self.catalog.known_permissions()
        return self.catalog.permissions_for(actor.role)
