"""create production stage tables

Revision ID: 3b7d2e9a4c10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7d2e9a4c10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the stage catalog, lots, stage history and movement ledger."""
    op.create_table(
        "production_stages",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("chain", sa.String(length=50), nullable=False),
        sa.Column("purpose", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_terminal", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id", "chain", "purpose", "code", name="uq_production_stage_code", postgresql_nulls_not_distinct=True
        ),
    )
    op.create_index(op.f("ix_production_stages_tenant_id"), "production_stages", ["tenant_id"], unique=False)
    op.create_index(
        "ix_production_stages_catalog", "production_stages", ["tenant_id", "chain", "sort_order"], unique=False
    )

    op.create_table(
        "lots",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("species", sa.String(length=50), nullable=False),
        sa.Column("purpose", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("stage_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["stage_id"], ["production_stages.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "code", name="uq_lot_tenant_code"),
    )
    op.create_index(op.f("ix_lots_tenant_id"), "lots", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_lots_stage_id"), "lots", ["stage_id"], unique=False)

    op.create_table(
        "lot_stage_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("from_stage_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("to_stage_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["lot_id"], ["lots.id"]),
        sa.ForeignKeyConstraint(["from_stage_id"], ["production_stages.id"]),
        sa.ForeignKeyConstraint(["to_stage_id"], ["production_stages.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lot_stage_events_tenant_id"), "lot_stage_events", ["tenant_id"], unique=False)
    op.create_index(
        "ix_lot_stage_events_history",
        "lot_stage_events",
        ["tenant_id", "lot_id", "event_date", "created_at"],
        unique=False,
    )

    op.create_table(
        "movements",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("movement_type", sa.String(length=30), nullable=True),
        sa.Column("qty", sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column("movement_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["lot_id"], ["lots.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_movements_tenant_id"), "movements", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_movements_lot_id"), "movements", ["lot_id"], unique=False)


def downgrade() -> None:
    """Drop the production stage tables."""
    op.drop_index(op.f("ix_movements_lot_id"), table_name="movements")
    op.drop_index(op.f("ix_movements_tenant_id"), table_name="movements")
    op.drop_table("movements")
    op.drop_index("ix_lot_stage_events_history", table_name="lot_stage_events")
    op.drop_index(op.f("ix_lot_stage_events_tenant_id"), table_name="lot_stage_events")
    op.drop_table("lot_stage_events")
    op.drop_index(op.f("ix_lots_stage_id"), table_name="lots")
    op.drop_index(op.f("ix_lots_tenant_id"), table_name="lots")
    op.drop_table("lots")
    op.drop_index("ix_production_stages_catalog", table_name="production_stages")
    op.drop_index(op.f("ix_production_stages_tenant_id"), table_name="production_stages")
    op.drop_table("production_stages")
