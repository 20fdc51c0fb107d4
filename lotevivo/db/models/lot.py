"""Lot model: a batch of animals; this service owns only its stage_id."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from lotevivo.db.base import Base


class Lot(Base):
    __tablename__ = "lots"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_lot_tenant_code"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    species = Column(String(50), nullable=False)
    purpose = Column(String(50), nullable=True)
    status = Column(String(50), nullable=False, default="active")
    notes = Column(Text, nullable=True)

    # Materialized current stage; lot_stage_events is the history
    stage_id = Column(UUID(as_uuid=True), ForeignKey("production_stages.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
