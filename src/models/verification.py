"""VerificationRequest model — queue of identity checks awaiting review."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin
from src.models.enums import VerificationStatus


class VerificationRequest(RecordMixin, Base):
    """A submitted verification packet."""

    __tablename__ = "verification_queue"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default=VerificationStatus.PENDING.value, nullable=False)
    account_type: Mapped[str | None] = mapped_column(String(20))
    documents: Mapped[dict[str, Any] | None] = mapped_column(JSONB, comment="ID and address document refs")
    reviewer_notes: Mapped[str | None] = mapped_column(String(1000))

    def __repr__(self) -> str:
        return f"<VerificationRequest user={self.user_id} status={self.status}>"
