"""Per-entity-kind rules for admin mutations.

One policy per targetable table: which permission each operation needs,
which fields a caller may set, and what a proposed change must satisfy.
AdminActionService runs the same pipeline for every kind and defers to
these policies for everything kind-specific.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from src.admin.errors import (
    AuthorizationError,
    InvalidInputError,
    InvalidTransitionError,
    SelfActionForbiddenError,
)
from src.escrow.state_machine import TransactionStateMachine, parse_status
from src.models import MODELS_BY_KIND, SYSTEM_FIELDS
from src.models.enums import (
    ROLE_RANK,
    AccountStatus,
    DisputeStatus,
    EntityKind,
    Role,
    TransactionStatus,
    VerificationStatus,
)
from src.security.guard import Actor
from src.security.permissions import Permission


def strip_system_fields(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop storage-owned columns from a caller payload."""
    return {k: v for k, v in changes.items() if k not in SYSTEM_FIELDS}


def _enum_value(enum_cls: type, field: str, value: Any) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = [e.value for e in enum_cls]
        msg = f"Invalid {field}: {value!r} (allowed: {allowed})"
        raise InvalidInputError(msg) from None


def _same_id(a: Any, b: Any) -> bool:
    return a is not None and b is not None and str(a) == str(b)


class EntityPolicy:
    """Default rules: pass-through edits on the table's own columns."""

    kind: EntityKind
    view_permission: Permission = Permission.VIEW_DATA
    update_permission: Permission = Permission.EDIT_DATA
    delete_permission: Permission = Permission.DELETE_DATA
    mutable: bool = True

    def __init__(self, top_level_role: str = Role.ADMIN.value) -> None:
        self.top_level_role = top_level_role
        columns = MODELS_BY_KIND[self.kind].__table__.columns.keys()
        self.editable_fields: frozenset[str] = frozenset(columns) - SYSTEM_FIELDS

    @property
    def update_action(self) -> str:
        return f"UPDATE_{self.kind.value.upper()}"

    @property
    def delete_action(self) -> str:
        return f"DELETE_{self.kind.value.upper()}"

    def ensure_mutable(self) -> None:
        if not self.mutable:
            msg = f"{self.kind.value} rows cannot be modified"
            raise InvalidInputError(msg)

    def prepare_update(
        self, actor: Actor, current: Mapping[str, Any], changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Validate a caller payload and return the column values to write."""
        values = strip_system_fields(changes)
        if not values:
            raise InvalidInputError("No updatable fields supplied")
        unknown = sorted(set(values) - self.editable_fields)
        if unknown:
            msg = f"Unknown fields for {self.kind.value}: {unknown}"
            raise InvalidInputError(msg)
        return self.validate_update(actor, current, values)

    def validate_update(
        self, actor: Actor, current: Mapping[str, Any], values: dict[str, Any]
    ) -> dict[str, Any]:
        return values

    def prepare_delete(self, actor: Actor, current: Mapping[str, Any]) -> dict[str, Any] | None:
        """None means remove the row; a dict means apply it as a soft delete."""
        return None


class ProfilePolicy(EntityPolicy):
    """Accounts: self-lockout and role-escalation guards."""

    kind = EntityKind.PROFILES
    view_permission = Permission.VIEW_USERS
    update_permission = Permission.EDIT_USERS
    delete_permission = Permission.DEACTIVATE_USERS

    @property
    def delete_action(self) -> str:
        return "DEACTIVATE_USER"

    def validate_update(
        self, actor: Actor, current: Mapping[str, Any], values: dict[str, Any]
    ) -> dict[str, Any]:
        if "role" in values:
            values["role"] = _enum_value(Role, "role", values["role"])
        if "status" in values:
            values["status"] = _enum_value(AccountStatus, "status", values["status"])
        if "verification_status" in values:
            values["verification_status"] = _enum_value(
                VerificationStatus, "verification_status", values["verification_status"]
            )

        self.check_self_action(actor, current, values)
        self.check_escalation(actor, current, values)
        return values

    def prepare_delete(self, actor: Actor, current: Mapping[str, Any]) -> dict[str, Any]:
        values = {"status": AccountStatus.INACTIVE.value}
        self.check_self_action(actor, current, values)
        self.check_escalation(actor, current, values)
        return values

    def check_self_action(
        self, actor: Actor, current: Mapping[str, Any], values: Mapping[str, Any]
    ) -> None:
        if not _same_id(actor.id, current.get("id")):
            return
        if "role" in values and values["role"] != current.get("role"):
            raise SelfActionForbiddenError("You cannot change your own role")
        if (
            "status" in values
            and values["status"] != current.get("status")
            and values["status"] != AccountStatus.ACTIVE.value
        ):
            raise SelfActionForbiddenError("You cannot deactivate your own account")

    def check_escalation(
        self, actor: Actor, current: Mapping[str, Any], values: Mapping[str, Any]
    ) -> None:
        """Non-top-level actors manage only accounts at or below their rank."""
        if actor.role == self.top_level_role:
            return
        target_rank = ROLE_RANK.get(str(current.get("role")), 0)
        if target_rank > actor.rank:
            raise AuthorizationError("Cannot modify an account with a higher role")
        new_role = values.get("role")
        if new_role is not None and new_role != current.get("role"):
            if ROLE_RANK.get(new_role, 0) > actor.rank:
                raise AuthorizationError(f"Cannot grant role {new_role}")


class TransactionPolicy(EntityPolicy):
    """Escrow transactions: status changes go through the state machine."""

    kind = EntityKind.ESCROW_TRANSACTIONS
    view_permission = Permission.VIEW_TRANSACTIONS
    update_permission = Permission.EDIT_TRANSACTIONS
    delete_permission = Permission.DELETE_TRANSACTIONS

    # Frozen once the transaction settles
    structural_fields: frozenset[str] = frozenset({"amount", "currency", "buyer_id", "seller_id", "status"})

    def __init__(
        self,
        state_machine: TransactionStateMachine,
        top_level_role: str = Role.ADMIN.value,
    ) -> None:
        super().__init__(top_level_role)
        self.state_machine = state_machine

    def validate_update(
        self, actor: Actor, current: Mapping[str, Any], values: dict[str, Any]
    ) -> dict[str, Any]:
        values = self.normalize(values)
        merged = {**current, **values}
        if _same_id(merged.get("buyer_id"), merged.get("seller_id")):
            raise InvalidInputError("Buyer and seller must be different accounts")

        # Drop no-op structural fields so whole-record edits of settled rows pass
        for field in self.structural_fields & set(values):
            if self._equal(field, current.get(field), values[field]):
                del values[field]

        current_status = parse_status(current.get("status"))
        if self.state_machine.is_terminal(current_status):
            changed = sorted(self.structural_fields & set(values))
            if changed:
                msg = f"Transaction is {current_status.value}; cannot change {changed}"
                raise InvalidTransitionError(msg)

        if "status" in values:
            action, new_status = self.state_machine.action_for_status(
                current_status, values["status"], actor.role
            )
            self.state_machine.require_parties(merged, action)
            values["status"] = new_status.value

        if not values:
            raise InvalidInputError("Update does not change anything")
        return values

    def prepare_delete(self, actor: Actor, current: Mapping[str, Any]) -> None:
        status = parse_status(current.get("status"))
        if self.state_machine.is_terminal(status):
            msg = f"Transaction is {status.value}; settled transactions cannot be deleted"
            raise InvalidTransitionError(msg)
        return None

    def normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        if "status" in values:
            values["status"] = parse_status(values["status"]).value
        if "amount" in values and values["amount"] is not None:
            try:
                amount = Decimal(str(values["amount"]))
            except InvalidOperation:
                msg = f"Invalid amount: {values['amount']!r}"
                raise InvalidInputError(msg) from None
            if not amount.is_finite() or amount <= 0:
                msg = f"Amount must be positive: {values['amount']!r}"
                raise InvalidInputError(msg)
            values["amount"] = amount
        for field in ("buyer_id", "seller_id"):
            if field in values and values[field] is not None:
                try:
                    values[field] = uuid.UUID(str(values[field]))
                except ValueError:
                    msg = f"Invalid {field}: {values[field]!r}"
                    raise InvalidInputError(msg) from None
        if "currency" in values and values["currency"] is not None:
            currency = str(values["currency"]).upper()
            if len(currency) != 3 or not currency.isalpha():
                msg = f"Invalid currency: {values['currency']!r}"
                raise InvalidInputError(msg)
            values["currency"] = currency
        return values

    @staticmethod
    def _equal(field: str, old: Any, new: Any) -> bool:
        if old is None or new is None:
            return old is None and new is None
        if field == "amount":
            return Decimal(str(old)) == Decimal(str(new))
        if field == "status":
            return parse_status(old) == parse_status(new)
        return str(old) == str(new)


class LegacyTransactionPolicy(TransactionPolicy):
    kind = EntityKind.TRANSACTIONS


class DisputePolicy(EntityPolicy):
    kind = EntityKind.DISPUTES
    view_permission = Permission.VIEW_DATA
    update_permission = Permission.MANAGE_DISPUTES
    delete_permission = Permission.DELETE_DATA

    def validate_update(
        self, actor: Actor, current: Mapping[str, Any], values: dict[str, Any]
    ) -> dict[str, Any]:
        if "status" in values:
            values["status"] = _enum_value(DisputeStatus, "status", values["status"])
        if values.get("resolution") is not None:
            resolution = _enum_value(TransactionStatus, "resolution", values["resolution"])
            if resolution not in (TransactionStatus.COMPLETED.value, TransactionStatus.CANCELLED.value):
                msg = f"Invalid resolution: {resolution}"
                raise InvalidInputError(msg)
            values["resolution"] = resolution
        return values


class VerificationQueuePolicy(EntityPolicy):
    kind = EntityKind.VERIFICATION_QUEUE
    view_permission = Permission.VIEW_USERS
    update_permission = Permission.VERIFY_USERS
    delete_permission = Permission.DELETE_DATA

    def validate_update(
        self, actor: Actor, current: Mapping[str, Any], values: dict[str, Any]
    ) -> dict[str, Any]:
        if "status" in values:
            values["status"] = _enum_value(VerificationStatus, "status", values["status"])
        return values


class AuditLogPolicy(EntityPolicy):
    """The audit ledger is readable, never writable through admin actions."""

    kind = EntityKind.AUDIT_LOGS
    view_permission = Permission.VIEW_AUDIT_LOGS
    mutable = False


def build_policies(
    state_machine: TransactionStateMachine,
    top_level_role: str = Role.ADMIN.value,
) -> dict[EntityKind, EntityPolicy]:
    """One policy per allow-listed entity kind."""
    policies: list[EntityPolicy] = [
        ProfilePolicy(top_level_role),
        LegacyTransactionPolicy(state_machine, top_level_role),
        TransactionPolicy(state_machine, top_level_role),
        DisputePolicy(top_level_role),
        VerificationQueuePolicy(top_level_role),
        AuditLogPolicy(top_level_role),
    ]
    return {policy.kind: policy for policy in policies}
