"""Audit trail — appends AuditRecords to the audit_logs table.

Append-only: there is no update or delete path. Each append runs in its
own session so it can never roll back the mutation it documents.
Failures are raised as AuditWriteError; the caller decides how to degrade.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.admin.errors import AuditWriteError
from src.models.audit import AuditLog
from src.schemas.audit import AuditRecord

logger = logging.getLogger(__name__)


class AuditTrail(Protocol):
    async def append(self, record: AuditRecord) -> None: ...


class SqlAuditTrail:
    """Writes audit records through a dedicated session per append."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append(self, record: AuditRecord) -> None:
        try:
            async with self._session_factory() as db:
                db.add(AuditLog(
                    id=record.id,
                    action=record.action,
                    entity_type=record.entity_type,
                    entity_id=record.entity_id,
                    old_value=record.old_value,
                    new_value=record.new_value,
                    performed_by=record.performed_by,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    created_at=record.created_at,
                    updated_at=record.created_at,
                ))
                await db.commit()
        except SQLAlchemyError as exc:
            msg = f"Failed to persist audit record {record.action} ({record.entity_type}:{record.entity_id})"
            raise AuditWriteError(msg) from exc

        logger.debug("Audit record written: %s %s:%s", record.action, record.entity_type, record.entity_id)
