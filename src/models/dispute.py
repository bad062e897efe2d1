"""Dispute model — a case opened against an escrow transaction."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin
from src.models.enums import DisputeStatus


class Dispute(RecordMixin, Base):
    """A buyer/seller dispute awaiting an admin decision."""

    __tablename__ = "disputes"

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("escrow_transactions.id"), nullable=False, index=True
    )
    raised_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=DisputeStatus.OPEN.value, nullable=False)
    resolution: Mapped[str | None] = mapped_column(String(20), comment="completed or cancelled")

    def __repr__(self) -> str:
        return f"<Dispute transaction={self.transaction_id} status={self.status}>"
