"""Initial schema — accounts, escrow transactions, disputes, verification, audit.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _escrow_columns() -> list[sa.Column]:
    return [
        sa.Column("title", sa.String(200)),
        sa.Column("description", sa.Text()),
        sa.Column("amount", sa.Numeric(12, 2)),
        sa.Column("currency", sa.String(3)),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("buyer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), index=True),
        sa.Column("seller_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), index=True),
    ]


def upgrade() -> None:
    # ── Standalone tables (no FKs) ─────────────────────────────────────

    op.create_table(
        "audit_logs",
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=False, comment="Table name"),
        sa.Column("entity_id", sa.String(100), index=True, comment="Null for bulk/system actions"),
        sa.Column("old_value", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("new_value", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("performed_by", sa.String(100), nullable=False, index=True),
        sa.Column("ip_address", sa.String(64)),
        sa.Column("user_agent", sa.String(500)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "profiles",
        sa.Column("role", sa.String(20), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("verification_status", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), unique=True),
        sa.Column("full_name", sa.String(200)),
        sa.Column("account_type", sa.String(20), comment="individual or business"),
        sa.Column("first_name", sa.String(100)),
        sa.Column("middle_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("date_of_birth", sa.String(10), comment="ISO date"),
        sa.Column("address", sa.String(255)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(100)),
        sa.Column("zip_code", sa.String(20)),
        sa.Column("country", sa.String(100)),
        sa.Column("phone_number", sa.String(30)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Tables referencing profiles ──────────────────────────────────

    op.create_table(
        "escrow_transactions",
        *_escrow_columns(),
        sa.Column("inspection_period", sa.Integer(), comment="Days"),
        sa.Column("items", postgresql.JSONB(astext_type=sa.Text())),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "transactions",
        *_escrow_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "verification_queue",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("account_type", sa.String(20)),
        sa.Column("documents", postgresql.JSONB(astext_type=sa.Text()), comment="ID and address document refs"),
        sa.Column("reviewer_notes", sa.String(1000)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "disputes",
        sa.Column(
            "transaction_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("escrow_transactions.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("raised_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id")),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("resolution", sa.String(20), comment="completed or cancelled"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    # Drop in reverse dependency order
    op.drop_table("disputes")
    op.drop_table("verification_queue")
    op.drop_table("transactions")
    op.drop_table("escrow_transactions")
    op.drop_table("profiles")
    op.drop_table("audit_logs")
