"""BalanceService: quantity balances read from the movement ledger."""

import uuid
from collections.abc import Collection

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lotevivo.core.exceptions import LotNotFoundError
from lotevivo.db.models.lot import Lot
from lotevivo.db.models.movement import Movement
from lotevivo.domain.balance import BalanceGrouping, MovementRow, aggregate_balances
from lotevivo.schemas.inventory import BalanceItem, BalanceResponse, LotBalanceResponse

logger = structlog.get_logger(__name__)


async def load_movement_rows(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lot_ids: Collection[uuid.UUID] | None = None,
) -> list[MovementRow]:
    """Read the tenant's movements, optionally restricted to some lots."""
    query = select(Movement.lot_id, Movement.location_id, Movement.movement_type, Movement.qty).where(
        Movement.tenant_id == tenant_id
    )
    if lot_ids is not None:
        if not lot_ids:
            return []
        query = query.where(Movement.lot_id.in_(list(lot_ids)))

    result = await session.execute(query)
    return [
        MovementRow(lot_id=lot_id, location_id=location_id, movement_type=movement_type, qty=qty)
        for lot_id, location_id, movement_type, qty in result.all()
    ]


class BalanceService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_balance(
        self,
        tenant_id: uuid.UUID,
        group_by: BalanceGrouping = BalanceGrouping.LOT,
    ) -> BalanceResponse:
        """Signed totals per lot, or per lot and location.

        Lots without movements are left out of the result.
        """
        async with self.session_factory() as session:
            rows = await load_movement_rows(session, tenant_id)

        balances = aggregate_balances(rows, group_by)
        logger.debug("balance_computed", tenant_id=str(tenant_id), group_by=group_by.value, rows=len(rows))

        if group_by == BalanceGrouping.LOT:
            items = [BalanceItem(lot_id=b.lot_id, balance=b.balance) for b in balances]
        else:
            items = [BalanceItem(lot_id=b.lot_id, location_id=b.location_id, balance=b.balance) for b in balances]
        return BalanceResponse(group_by=group_by, items=items)

    async def get_lot_balance(self, tenant_id: uuid.UUID, lot_id: uuid.UUID) -> LotBalanceResponse:
        """Total for one lot; 0 when the lot exists but has no movements.

        Raises:
            LotNotFoundError: lot missing or in another tenant
        """
        async with self.session_factory() as session:
            result = await session.execute(select(Lot.id).where(Lot.id == lot_id, Lot.tenant_id == tenant_id))
            if result.scalar_one_or_none() is None:
                raise LotNotFoundError()
            rows = await load_movement_rows(session, tenant_id, [lot_id])

        balances = aggregate_balances(rows, BalanceGrouping.LOT)
        total = balances[0].balance if balances else 0.0
        return LotBalanceResponse(lot_id=lot_id, balance=total)
