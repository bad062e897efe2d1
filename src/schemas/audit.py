"""AuditRecord schema — the forensic entry written for every admin mutation.

Immutable once created. Written exactly once per successful mutation,
after persistence succeeded and before the response is returned.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Origin(BaseModel):
    """Where a request came from."""

    ip_address: str | None = None
    user_agent: str | None = None

    model_config = {"frozen": True}


class AuditRecord(BaseModel):
    """One entry in the audit ledger."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    action: str
    entity_type: str
    entity_id: str | None = Field(default=None, description="Null for bulk/system actions")

    # JSON-safe snapshots (see jsonable_encoder in the service)
    old_value: dict[str, Any] | None = None
    new_value: dict[str, Any] | None = None

    performed_by: str
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}
