"""Pydantic schemas for the stage catalog, stage transitions and the kanban board."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# ==================== STAGE CATALOG ====================


class StageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chain: str
    purpose: str | None
    name: str
    code: str
    sort_order: int
    is_terminal: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class StageListResponse(BaseModel):
    """Catalog listing. items defaults to empty array, never null."""

    items: list[StageResponse] = Field(default_factory=list)


class CreateStageRequest(BaseModel):
    chain: str = Field(..., min_length=1, max_length=50)
    purpose: str | None = Field(default=None, min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=120)
    code: str = Field(..., min_length=1, max_length=50)
    sort_order: int = 0
    is_terminal: bool = False
    is_active: bool = True


class UpdateStageRequest(BaseModel):
    """Partial update. Only fields present in the request body are applied.

    ``purpose`` may be sent as null to make the stage chain-wide.
    """

    name: str | None = Field(default=None, min_length=1, max_length=120)
    sort_order: int | None = None
    is_terminal: bool | None = None
    is_active: bool | None = None
    purpose: str | None = Field(default=None, min_length=1, max_length=50)


class SeedCatalogRequest(BaseModel):
    template: str = Field(..., min_length=1, description="Template name, e.g. 'poultry-meat'")


class SeedCatalogResponse(BaseModel):
    template: str
    created: list[StageResponse] = Field(default_factory=list)
    skipped_codes: list[str] = Field(default_factory=list)


# ==================== STAGE TRANSITIONS ====================


class MoveLotRequest(BaseModel):
    to_stage_id: UUID
    event_date: date = Field(..., description="Business date of the move (YYYY-MM-DD)")
    notes: str | None = None
    # Any JSON accepted here; anything that is not an object is stored as {}
    meta: Any = None


class StageEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lot_id: UUID
    from_stage_id: UUID | None
    to_stage_id: UUID
    event_date: date
    notes: str | None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class StageEventListResponse(BaseModel):
    """Most-recent-first history. items defaults to empty array, never null."""

    lot_id: UUID
    items: list[StageEventResponse] = Field(default_factory=list)


# ==================== KANBAN ====================


class KanbanLotCard(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lot_id: UUID
    code: str
    name: str
    species: str
    stage_id: UUID
    updated_at: datetime | None
    balance: float | None = Field(default=None, description="null when no movement data exists yet")


class KanbanColumnResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stage_id: UUID
    name: str
    code: str
    is_terminal: bool
    sort_order: int
    next_stage_id: UUID | None = None
    lots: list[KanbanLotCard] = Field(default_factory=list)


class KanbanBoardResponse(BaseModel):
    """Board for one chain/purpose. columns is [] when no catalog is seeded."""

    chain: str
    purpose: str | None = None
    without_purpose: bool = False
    columns: list[KanbanColumnResponse] = Field(default_factory=list)
