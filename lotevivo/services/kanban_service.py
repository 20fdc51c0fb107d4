"""KanbanService: read-only board of lots per production stage."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lotevivo.db.models.lot import Lot
from lotevivo.domain.balance import balances_by_lot
from lotevivo.domain.kanban import build_board
from lotevivo.domain.stages import PurposeFilter, PurposeMode
from lotevivo.schemas.production import KanbanBoardResponse, KanbanColumnResponse
from lotevivo.services.balance_service import load_movement_rows
from lotevivo.services.stage_catalog_service import select_active_stages


class KanbanService:
    """Builds the board from the stage catalog, the lots and their balances.

    Lots are matched to the board only through their stage_id; a lot linked
    to a stage of another chain simply shows up on that chain's board.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_board(self, tenant_id: uuid.UUID, chain: str, purpose: PurposeFilter) -> KanbanBoardResponse:
        """Columns for every active stage of the chain, in sort order.

        Returns an empty board when the chain has no stages yet.
        """
        purpose_value = purpose.value if purpose.mode == PurposeMode.EXACT else None
        without_purpose = purpose.mode == PurposeMode.NONE

        async with self.session_factory() as session:
            result = await session.execute(select_active_stages(tenant_id, chain, purpose))
            stages = result.scalars().all()
            if not stages:
                return KanbanBoardResponse(
                    chain=chain, purpose=purpose_value, without_purpose=without_purpose, columns=[]
                )

            result = await session.execute(
                select(Lot)
                .where(Lot.tenant_id == tenant_id, Lot.stage_id.in_([s.id for s in stages]))
                .order_by(Lot.updated_at.desc())
            )
            lots = result.scalars().all()

            movements = await load_movement_rows(session, tenant_id, [lot.id for lot in lots])

        columns = build_board(stages, lots, balances_by_lot(movements))
        return KanbanBoardResponse(
            chain=chain,
            purpose=purpose_value,
            without_purpose=without_purpose,
            columns=[KanbanColumnResponse.model_validate(c) for c in columns],
        )
