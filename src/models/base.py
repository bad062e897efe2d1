"""Declarative base and the columns every admin-targetable table shares.

Ids are UUIDs and timestamps come from the PostgreSQL clock. Admin
actions write `updated_at` themselves so the row and its audit record
agree on when the change happened.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class RecordMixin:
    """Primary key and lifecycle timestamps, owned by the storage layer."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=func.gen_random_uuid(),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


# Never accepted from a caller payload
SYSTEM_FIELDS: frozenset[str] = frozenset({"id", "created_at", "updated_at"})
