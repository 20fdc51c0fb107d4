"""Pydantic schemas for lots and quantity balances."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lotevivo.domain.balance import BalanceGrouping


class CreateLotRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    species: str = Field(..., min_length=1, max_length=50)
    purpose: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class LotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    species: str
    purpose: str | None
    status: str
    stage_id: UUID | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class CreateLotResponse(BaseModel):
    created: bool
    lot: LotResponse


class BalanceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lot_id: UUID
    location_id: UUID | None = None
    balance: float


class BalanceResponse(BaseModel):
    """Per-key totals. Lots without movements are absent, never zero-filled."""

    group_by: BalanceGrouping
    items: list[BalanceItem] = Field(default_factory=list)


class LotBalanceResponse(BaseModel):
    lot_id: UUID
    balance: float
