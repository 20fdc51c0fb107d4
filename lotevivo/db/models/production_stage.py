"""ProductionStage model: one ordered step of a tenant's production chain."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from lotevivo.db.base import Base


class ProductionStage(Base):
    __tablename__ = "production_stages"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "chain", "purpose", "code", name="uq_production_stage_code", postgresql_nulls_not_distinct=True
        ),
        Index("ix_production_stages_catalog", "tenant_id", "chain", "sort_order"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    chain = Column(String(50), nullable=False)  # e.g. "poultry", "swine"
    purpose = Column(String(50), nullable=True)  # e.g. "laying", "meat"; null = chain-wide
    name = Column(String(120), nullable=False)
    code = Column(String(50), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_terminal = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
    # No deletes: retired stages are flagged is_active=False so history keeps resolving
