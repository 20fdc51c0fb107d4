"""Movement model: quantity ledger owned by the inventory module (read-only here)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID

from lotevivo.db.base import Base


class Movement(Base):
    __tablename__ = "movements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    lot_id = Column(UUID(as_uuid=True), ForeignKey("lots.id"), nullable=False, index=True)
    location_id = Column(UUID(as_uuid=True), nullable=True)

    # ENTRY_PURCHASE, BIRTH, TRANSFER_IN, SALE, DEATH, CULL, TRANSFER_OUT; null = qty already signed
    movement_type = Column(String(30), nullable=True)
    qty = Column(Numeric(14, 3), nullable=True)
    movement_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
