"""Profile model — a marketplace account (buyer, seller, or staff).

Never hard-deleted: deactivation flips `status`, the row stays for audit.
"""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin
from src.models.enums import AccountStatus, Role, VerificationStatus


class Profile(RecordMixin, Base):
    """An account on the escrow marketplace."""

    __tablename__ = "profiles"

    # Access
    role: Mapped[str] = mapped_column(String(20), default=Role.USER.value, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default=AccountStatus.ACTIVE.value, nullable=False)
    verification_status: Mapped[str] = mapped_column(
        String(20), default=VerificationStatus.UNVERIFIED.value, nullable=False
    )

    # Profile
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    full_name: Mapped[str | None] = mapped_column(String(200))
    account_type: Mapped[str | None] = mapped_column(String(20), comment="individual or business")
    first_name: Mapped[str | None] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    date_of_birth: Mapped[str | None] = mapped_column(String(10), comment="ISO date")
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(100))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    country: Mapped[str | None] = mapped_column(String(100))
    phone_number: Mapped[str | None] = mapped_column(String(30))

    def __repr__(self) -> str:
        return f"<Profile id={self.id} role={self.role} status={self.status}>"
