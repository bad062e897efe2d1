"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization and PostgreSQL native enum types.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role — resolves to a bundle of permissions."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


# Higher rank may manage lower rank, never the reverse
ROLE_RANK: dict[str, int] = {
    Role.USER.value: 0,
    Role.MODERATOR.value: 1,
    Role.ADMIN.value: 2,
}


class AccountStatus(str, Enum):
    """Account lifecycle. Deactivation is a status change, never a row removal."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"


# Accounts in these states cannot act, whatever their role
LOCKED_STATUSES: frozenset[str] = frozenset({
    AccountStatus.INACTIVE.value,
    AccountStatus.SUSPENDED.value,
})


class VerificationStatus(str, Enum):
    """Identity verification (KYC) state of an account."""

    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class TransactionStatus(str, Enum):
    """Escrow transaction lifecycle states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    DISPUTED = "disputed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionAction(str, Enum):
    """Actions that move a transaction between states."""

    ACCEPT = "accept"
    DELIVER = "deliver"
    CONFIRM_RECEIPT = "confirm_receipt"
    CANCEL = "cancel"
    RAISE_DISPUTE = "raise_dispute"
    RESOLVE = "resolve"


class DisputeStatus(str, Enum):
    """Dispute case state."""

    OPEN = "open"
    RESOLVED = "resolved"


class EntityKind(str, Enum):
    """Tables an administrator may target. Anything else is rejected up front."""

    PROFILES = "profiles"
    TRANSACTIONS = "transactions"
    ESCROW_TRANSACTIONS = "escrow_transactions"
    DISPUTES = "disputes"
    AUDIT_LOGS = "audit_logs"
    VERIFICATION_QUEUE = "verification_queue"
