"""SQLAlchemy ORM models for the escrow admin control plane.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from src.models.audit import AuditLog
from src.models.base import SYSTEM_FIELDS, Base
from src.models.dispute import Dispute
from src.models.enums import (
    AccountStatus,
    DisputeStatus,
    EntityKind,
    Role,
    TransactionAction,
    TransactionStatus,
    VerificationStatus,
)
from src.models.profile import Profile
from src.models.transaction import EscrowTransaction, Transaction
from src.models.verification import VerificationRequest

# Table behind each admin-targetable entity kind
MODELS_BY_KIND: dict[EntityKind, type[Base]] = {
    EntityKind.PROFILES: Profile,
    EntityKind.TRANSACTIONS: Transaction,
    EntityKind.ESCROW_TRANSACTIONS: EscrowTransaction,
    EntityKind.DISPUTES: Dispute,
    EntityKind.AUDIT_LOGS: AuditLog,
    EntityKind.VERIFICATION_QUEUE: VerificationRequest,
}

__all__ = [
    # Base
    "Base",
    "SYSTEM_FIELDS",
    "MODELS_BY_KIND",
    # Models
    "Profile",
    "EscrowTransaction",
    "Transaction",
    "Dispute",
    "VerificationRequest",
    "AuditLog",
    # Enums
    "Role",
    "AccountStatus",
    "VerificationStatus",
    "TransactionStatus",
    "TransactionAction",
    "DisputeStatus",
    "EntityKind",
]
