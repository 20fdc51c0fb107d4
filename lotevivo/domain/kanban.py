"""Kanban board projection: lots grouped by current stage, in stage order."""
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from lotevivo.domain.stages import next_stage


class BoardStage(Protocol):
    id: uuid.UUID
    name: str
    code: str
    is_terminal: bool
    is_active: bool
    sort_order: int


class BoardLot(Protocol):
    id: uuid.UUID
    code: str
    name: str
    species: str
    stage_id: uuid.UUID | None
    updated_at: datetime


@dataclass
class LotCard:
    lot_id: uuid.UUID
    code: str
    name: str
    species: str
    stage_id: uuid.UUID
    updated_at: datetime | None
    balance: float | None  # None = no movement data yet, not zero


@dataclass
class KanbanColumn:
    stage_id: uuid.UUID
    name: str
    code: str
    is_terminal: bool
    sort_order: int
    next_stage_id: uuid.UUID | None = None
    lots: list[LotCard] = field(default_factory=list)


def build_board(
    stages: Sequence[BoardStage],
    lots: Sequence[BoardLot],
    balances: Mapping[uuid.UUID, float] | None = None,
) -> list[KanbanColumn]:
    """Group ``lots`` into one column per stage.

    Every stage gets a column, empty or not. Lots whose stage is not among
    ``stages`` are dropped. Lot order within a column follows ``lots``.
    A column's next_stage_id skips inactive stages.
    """
    balances = balances or {}
    ordered = sorted(stages, key=lambda s: s.sort_order)

    columns: list[KanbanColumn] = []
    by_stage: dict[uuid.UUID, KanbanColumn] = {}
    for stage in ordered:
        successor = next_stage(ordered, stage.id)
        column = KanbanColumn(
            stage_id=stage.id,
            name=stage.name,
            code=stage.code,
            is_terminal=stage.is_terminal,
            sort_order=stage.sort_order,
            next_stage_id=successor.id if successor is not None else None,
        )
        columns.append(column)
        by_stage[stage.id] = column

    for lot in lots:
        column = by_stage.get(lot.stage_id) if lot.stage_id is not None else None
        if column is None:
            continue
        column.lots.append(
            LotCard(
                lot_id=lot.id,
                code=lot.code,
                name=lot.name,
                species=lot.species,
                stage_id=lot.stage_id,
                updated_at=lot.updated_at,
                balance=balances.get(lot.id),
            )
        )

    return columns
