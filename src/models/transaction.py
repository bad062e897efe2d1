"""Escrow transaction models.

`escrow_transactions` is the live table; `transactions` is the older
table from the first marketplace release, still editable by admins.
Both share the same columns and the same state machine.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin
from src.models.enums import TransactionStatus


class EscrowFieldsMixin:
    """Columns common to both transaction tables."""

    title: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    currency: Mapped[str | None] = mapped_column(String(3))
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.PENDING.value, nullable=False, index=True
    )

    # Parties: nullable until the counterparty joins
    buyer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), index=True
    )
    seller_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), index=True
    )


class EscrowTransaction(EscrowFieldsMixin, RecordMixin, Base):
    """Money held in escrow between a buyer and a seller."""

    __tablename__ = "escrow_transactions"

    inspection_period: Mapped[int | None] = mapped_column(Integer, comment="Days")
    items: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB)

    def __repr__(self) -> str:
        return f"<EscrowTransaction id={self.id} status={self.status}>"


class Transaction(EscrowFieldsMixin, RecordMixin, Base):
    """First-release transaction row."""

    __tablename__ = "transactions"

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} status={self.status}>"
