"""Admin action service — one pipeline for every privileged mutation.

    authorize → load current snapshot → policy / state machine → persist → audit

Anything failing before persistence leaves no mutation and no audit entry.
A persistence failure leaves no audit entry. An audit failure after a
successful write is logged and reported as degraded success: the write
is never undone to protect the ledger.

Concurrent admins are not coordinated here. Each write is a single-row
update keyed by id, so a stale read followed by a write can overwrite a
change made in between (last writer wins). Transaction status changes are
the exception: the update is pinned to the status that was validated, so
a settled transaction cannot be reopened by a racing writer.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder

from src.admin.errors import (
    AuthorizationError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
)
from src.admin.policies import EntityPolicy, ProfilePolicy, TransactionPolicy, build_policies
from src.db.store import EntityStore
from src.escrow.state_machine import TransactionStateMachine, parse_action
from src.escrow.states import PARTY_ACTIONS
from src.models.enums import (
    EntityKind,
    TransactionAction,
    TransactionStatus,
    VerificationStatus,
)
from src.schemas.actions import CreateTransactionRequest, VerificationSubmission
from src.schemas.audit import AuditRecord, Origin
from src.security.audit import AuditTrail
from src.security.guard import Actor, AuthorizationGuard
from src.security.permissions import Permission

logger = logging.getLogger(__name__)

_TRANSACTION_KINDS = frozenset({EntityKind.ESCROW_TRANSACTIONS, EntityKind.TRANSACTIONS})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of a committed admin action."""

    action: str
    entity_type: str
    entity_id: str | None
    snapshot: dict[str, Any] | None
    audit_recorded: bool = True

    @property
    def degraded(self) -> bool:
        return not self.audit_recorded


class AdminActionService:
    """Orchestrates authorization, validation, persistence and audit."""

    def __init__(
        self,
        guard: AuthorizationGuard,
        store: EntityStore,
        audit: AuditTrail,
        state_machine: TransactionStateMachine | None = None,
        policies: Mapping[EntityKind, EntityPolicy] | None = None,
        list_limit: int = 100,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.guard = guard
        self.store = store
        self.audit = audit
        self.state_machine = state_machine or TransactionStateMachine()
        self.policies = dict(policies or build_policies(self.state_machine, guard.top_level_role))
        self.list_limit = list_limit
        self._clock = clock

    # ── Pipeline steps ───────────────────────────────────────────────

    def policy_for(self, kind: str | EntityKind) -> EntityPolicy:
        """Resolve an allow-listed entity kind. Anything else is rejected before lookup."""
        try:
            return self.policies[EntityKind(kind)]
        except (ValueError, KeyError):
            msg = f"Table not allowed: {kind}"
            raise InvalidInputError(msg) from None

    async def _load(self, kind: EntityKind, entity_id: str) -> dict[str, Any]:
        current = await self.store.fetch(kind, entity_id)
        if current is None:
            msg = f"{kind.value} row not found: {entity_id}"
            raise NotFoundError(msg)
        return current

    async def _persist_update(
        self,
        actor: Actor,
        kind: EntityKind,
        entity_id: str,
        current: dict[str, Any],
        values: dict[str, Any],
        action: str,
        origin: Origin | None,
    ) -> ActionOutcome:
        # A status change only lands on the status it was validated against
        expected = None
        if kind in _TRANSACTION_KINDS and "status" in values:
            expected = {"status": current.get("status")}

        values = {**values, "updated_at": self._clock()}
        updated = await self.store.update(kind, entity_id, values, expected=expected)
        if updated is None:
            if expected is not None and await self.store.fetch(kind, entity_id) is not None:
                msg = f"Transaction {entity_id} changed status concurrently; reload and retry"
                raise InvalidTransitionError(msg)
            # Row vanished between read and write
            msg = f"{kind.value} row not found: {entity_id}"
            raise NotFoundError(msg)

        logger.info("Admin action %s on %s:%s by %s", action, kind.value, entity_id, actor.id)
        recorded = await self._record(actor, action, kind, entity_id, current, updated, origin)
        return ActionOutcome(action, kind.value, str(entity_id), updated, recorded)

    async def _record(
        self,
        actor: Actor,
        action: str,
        kind: EntityKind,
        entity_id: str | None,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        origin: Origin | None,
    ) -> bool:
        """Append the audit record. Returns False when the ledger write failed."""
        origin = origin or Origin()
        record = AuditRecord(
            action=action,
            entity_type=kind.value,
            entity_id=str(entity_id) if entity_id is not None else None,
            old_value=jsonable_encoder(before) if before is not None else None,
            new_value=jsonable_encoder(after) if after is not None else None,
            performed_by=actor.id,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
            created_at=self._clock(),
        )
        try:
            await self.audit.append(record)
        except Exception:
            logger.exception(
                "Audit write failed after committed %s on %s:%s by %s; audit degraded",
                action,
                kind.value,
                entity_id,
                actor.id,
            )
            return False
        return True

    # ── Reads ────────────────────────────────────────────────────────

    async def permissions_of(self, actor_id: str) -> list[str]:
        return sorted(await self.guard.permissions_of(actor_id))

    async def get_entity(self, actor_id: str, kind: str | EntityKind, entity_id: str) -> dict[str, Any]:
        policy = self.policy_for(kind)
        await self.guard.require_permission(actor_id, policy.view_permission)
        return await self._load(policy.kind, entity_id)

    async def list_entities(
        self, actor_id: str, kind: str | EntityKind, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Most recent rows first, capped at the configured list limit."""
        policy = self.policy_for(kind)
        await self.guard.require_permission(actor_id, policy.view_permission)
        bounded = self.list_limit if limit is None else max(1, min(limit, self.list_limit))
        return await self.store.fetch_many(policy.kind, bounded)

    # ── Generic mutations ────────────────────────────────────────────

    async def update_entity(
        self,
        actor_id: str,
        kind: str | EntityKind,
        entity_id: str,
        changes: Mapping[str, Any],
        origin: Origin | None = None,
        action: str | None = None,
    ) -> ActionOutcome:
        policy = self.policy_for(kind)
        actor = await self.guard.require_permission(actor_id, policy.update_permission)
        policy.ensure_mutable()
        if not isinstance(changes, Mapping):
            raise InvalidInputError("Update payload must be an object")

        current = await self._load(policy.kind, entity_id)
        values = policy.prepare_update(actor, current, changes)
        return await self._persist_update(
            actor, policy.kind, entity_id, current, values, action or policy.update_action, origin
        )

    async def delete_entity(
        self,
        actor_id: str,
        kind: str | EntityKind,
        entity_id: str,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        """Remove a row, or soft-delete it where the policy says so (accounts)."""
        policy = self.policy_for(kind)
        actor = await self.guard.require_permission(actor_id, policy.delete_permission)
        policy.ensure_mutable()

        current = await self._load(policy.kind, entity_id)
        soft_values = policy.prepare_delete(actor, current)
        if soft_values is not None:
            return await self._persist_update(
                actor, policy.kind, entity_id, current, soft_values, policy.delete_action, origin
            )

        if not await self.store.delete(policy.kind, entity_id):
            msg = f"{policy.kind.value} row not found: {entity_id}"
            raise NotFoundError(msg)

        logger.info("Admin action %s on %s:%s by %s", policy.delete_action, policy.kind.value, entity_id, actor.id)
        recorded = await self._record(actor, policy.delete_action, policy.kind, entity_id, current, None, origin)
        return ActionOutcome(policy.delete_action, policy.kind.value, str(entity_id), None, recorded)

    # ── Transactions ─────────────────────────────────────────────────

    async def update_transaction(
        self,
        actor_id: str,
        transaction_id: str,
        changes: Mapping[str, Any],
        origin: Origin | None = None,
    ) -> ActionOutcome:
        return await self.update_entity(
            actor_id, EntityKind.ESCROW_TRANSACTIONS, transaction_id, changes, origin, action="UPDATE_TRANSACTION"
        )

    async def cancel_transaction(
        self, actor_id: str, transaction_id: str, origin: Origin | None = None
    ) -> ActionOutcome:
        """Cancel instead of deleting. Completed transactions cannot be cancelled."""
        actor = await self.guard.require_permission(actor_id, Permission.CANCEL_TRANSACTIONS)
        kind = EntityKind.ESCROW_TRANSACTIONS
        current = await self._load(kind, transaction_id)
        new_status = self.state_machine.apply_transition(
            current.get("status"), TransactionAction.CANCEL, actor.role
        )
        return await self._persist_update(
            actor, kind, transaction_id, current, {"status": new_status.value}, "CANCEL_TRANSACTION", origin
        )

    async def resolve_dispute(
        self,
        actor_id: str,
        transaction_id: str,
        outcome: str,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        actor = await self.guard.require_permission(actor_id, Permission.MANAGE_DISPUTES)
        kind = EntityKind.ESCROW_TRANSACTIONS
        current = await self._load(kind, transaction_id)
        new_status = self.state_machine.apply_transition(
            current.get("status"), TransactionAction.RESOLVE, actor.role, outcome=outcome
        )
        return await self._persist_update(
            actor, kind, transaction_id, current, {"status": new_status.value}, "RESOLVE_DISPUTE", origin
        )

    # ── Users ────────────────────────────────────────────────────────

    async def update_user(
        self,
        actor_id: str,
        user_id: str,
        changes: Mapping[str, Any],
        origin: Origin | None = None,
    ) -> ActionOutcome:
        return await self.update_entity(actor_id, EntityKind.PROFILES, user_id, changes, origin, action="UPDATE_USER")

    async def deactivate_user(self, actor_id: str, user_id: str, origin: Origin | None = None) -> ActionOutcome:
        """Accounts are never removed; deactivation is a status change."""
        return await self.delete_entity(actor_id, EntityKind.PROFILES, user_id, origin)

    async def verify_user(
        self,
        actor_id: str,
        user_id: str,
        decision: str,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        actor = await self.guard.require_permission(actor_id, Permission.VERIFY_USERS)
        if decision not in (VerificationStatus.VERIFIED.value, VerificationStatus.REJECTED.value):
            msg = f"Invalid verification decision: {decision!r}"
            raise InvalidInputError(msg)

        kind = EntityKind.PROFILES
        current = await self._load(kind, user_id)
        policy = self.policies[kind]
        if isinstance(policy, ProfilePolicy):
            policy.check_escalation(actor, current, {})
        return await self._persist_update(
            actor, kind, user_id, current, {"verification_status": decision}, "VERIFY_USER", origin
        )

    # ── Party actions ────────────────────────────────────────────────

    async def apply_party_action(
        self,
        actor_id: str,
        transaction_id: str,
        action: str,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        """Buyer/seller action, validated by the same state machine as admin edits."""
        actor = await self.guard.require_actor(actor_id)
        act = parse_action(action)
        if act not in PARTY_ACTIONS:
            msg = f"{act.value} is not a party action"
            raise AuthorizationError(msg)

        kind = EntityKind.ESCROW_TRANSACTIONS
        current = await self._load(kind, transaction_id)
        side = _party_side(actor, current)
        if side is None or side not in PARTY_ACTIONS[act]:
            logger.warning("Actor %s may not %s transaction %s", actor.id, act.value, transaction_id)
            msg = f"Only the {' or '.join(sorted(PARTY_ACTIONS[act]))} may {act.value} this transaction"
            raise AuthorizationError(msg)

        self.state_machine.require_parties(current, act)
        new_status = self.state_machine.apply_transition(current.get("status"), act, actor.role)
        return await self._persist_update(
            actor,
            kind,
            transaction_id,
            current,
            {"status": new_status.value},
            f"TRANSACTION_{act.value.upper()}",
            origin,
        )

    async def create_transaction(
        self,
        actor_id: str,
        request: CreateTransactionRequest,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        """Open a transaction in `pending`. The counterparty may be unassigned."""
        actor = await self.guard.require_actor(actor_id)
        if request.counterparty_id is not None and str(request.counterparty_id) == actor.id:
            raise InvalidInputError("Counterparty must be a different account")

        policy = self.policies[EntityKind.ESCROW_TRANSACTIONS]
        values: dict[str, Any] = {
            "title": request.title,
            "description": request.description,
            "amount": request.amount,
            "currency": request.currency,
            "status": TransactionStatus.PENDING.value,
            "buyer_id": actor.id if request.role == "buyer" else request.counterparty_id,
            "seller_id": actor.id if request.role == "seller" else request.counterparty_id,
            "inspection_period": request.inspection_period,
            "items": request.items,
        }
        if isinstance(policy, TransactionPolicy):
            values = policy.normalize(values)

        kind = EntityKind.ESCROW_TRANSACTIONS
        created = await self.store.insert(kind, values)
        entity_id = str(created.get("id"))
        logger.info("Transaction %s created by %s as %s", entity_id, actor.id, request.role)
        recorded = await self._record(actor, "CREATE_TRANSACTION", kind, entity_id, None, created, origin)
        return ActionOutcome("CREATE_TRANSACTION", kind.value, entity_id, created, recorded)

    async def join_transaction(
        self, actor_id: str, transaction_id: str, origin: Origin | None = None
    ) -> ActionOutcome:
        """Fill the missing party of a pending transaction with the actor."""
        actor = await self.guard.require_actor(actor_id)
        kind = EntityKind.ESCROW_TRANSACTIONS
        current = await self._load(kind, transaction_id)

        if current.get("status") != TransactionStatus.PENDING.value:
            msg = f"Only pending transactions can be joined (status is {current.get('status')})"
            raise InvalidTransitionError(msg)
        if _party_side(actor, current) is not None:
            raise InvalidInputError("You are already a party to this transaction")

        if current.get("buyer_id") is None:
            values = {"buyer_id": uuid.UUID(actor.id)}
        elif current.get("seller_id") is None:
            values = {"seller_id": uuid.UUID(actor.id)}
        else:
            raise InvalidInputError("Transaction already has both parties")

        return await self._persist_update(actor, kind, transaction_id, current, values, "JOIN_TRANSACTION", origin)

    # ── Verification ─────────────────────────────────────────────────

    async def submit_verification(
        self,
        actor_id: str,
        submission: VerificationSubmission,
        origin: Origin | None = None,
    ) -> ActionOutcome:
        """Account holder submits identity details; profile goes to `pending`."""
        actor = await self.guard.require_actor(actor_id)
        kind = EntityKind.PROFILES
        current = await self._load(kind, actor.id)
        if current.get("verification_status") == VerificationStatus.VERIFIED.value:
            raise InvalidInputError("Account is already verified")

        details = submission.personal_details.model_dump()
        values = {
            **details,
            "account_type": submission.account_type,
            "verification_status": VerificationStatus.PENDING.value,
        }
        # Queue first: a failed insert leaves the profile untouched
        queue_kind = EntityKind.VERIFICATION_QUEUE
        queued = await self.store.insert(queue_kind, {
            "user_id": uuid.UUID(actor.id),
            "status": VerificationStatus.PENDING.value,
            "account_type": submission.account_type,
            "documents": {
                "id_document": submission.id_document,
                "address_document": submission.address_document,
            },
        })
        try:
            outcome = await self._persist_update(
                actor, kind, actor.id, current, values, "SUBMIT_VERIFICATION", origin
            )
        except (PersistenceError, NotFoundError):
            logger.warning("Profile update failed for %s; withdrawing verification request", actor.id)
            await self.store.delete(queue_kind, str(queued.get("id")))
            raise

        await self._record(
            actor, "CREATE_VERIFICATION_REQUEST", queue_kind, str(queued.get("id")), None, queued, origin
        )
        return outcome


def _party_side(actor: Actor, transaction: Mapping[str, Any]) -> str | None:
    if transaction.get("buyer_id") is not None and str(transaction["buyer_id"]) == actor.id:
        return "buyer"
    if transaction.get("seller_id") is not None and str(transaction["seller_id"]) == actor.id:
        return "seller"
    return None
