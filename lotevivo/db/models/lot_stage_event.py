"""LotStageEvent model: append-only stage transition history."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID

from lotevivo.db.base import Base


class LotStageEvent(Base):
    __tablename__ = "lot_stage_events"
    __table_args__ = (Index("ix_lot_stage_events_history", "tenant_id", "lot_id", "event_date", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    lot_id = Column(UUID(as_uuid=True), ForeignKey("lots.id"), nullable=False)

    from_stage_id = Column(UUID(as_uuid=True), ForeignKey("production_stages.id"), nullable=True)  # null = no prior stage
    to_stage_id = Column(UUID(as_uuid=True), ForeignKey("production_stages.id"), nullable=False)
    event_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    meta = Column(JSONB, nullable=False, default=dict)  # caller context, e.g. {"ui": "kanban"}

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    # NO updated_at -- events are immutable (append-only)
