"""AuditLog model — immutable trail of every privileged mutation.

Each row stores the entity snapshot before and after the change.
This table is append-only: no updates or deletes.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin


class AuditLog(RecordMixin, Base):
    """Immutable audit trail entry."""

    __tablename__ = "audit_logs"

    # What happened
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, comment="Table name")
    entity_id: Mapped[str | None] = mapped_column(String(100), index=True, comment="Null for bulk/system actions")

    # Snapshots
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB)

    # Who and from where
    performed_by: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))

    def __repr__(self) -> str:
        return f"<AuditLog action={self.action} entity={self.entity_type}:{self.entity_id}>"
