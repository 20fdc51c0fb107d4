"""LotService: minimal lot registry used by the stage lifecycle."""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lotevivo.core.exceptions import LotNotFoundError
from lotevivo.db.models.lot import Lot
from lotevivo.schemas.inventory import CreateLotRequest, CreateLotResponse, LotResponse

logger = structlog.get_logger(__name__)


class LotService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def register_lot(self, tenant_id: uuid.UUID, request: CreateLotRequest) -> CreateLotResponse:
        """Create a lot without a stage.

        Idempotent by code: an existing code in the tenant returns that lot
        with ``created=False``.
        """
        async with self.session_factory() as session:
            existing = await self._find_by_code(session, tenant_id, request.code)
            if existing is not None:
                return CreateLotResponse(created=False, lot=LotResponse.model_validate(existing))

            lot = Lot(
                tenant_id=tenant_id,
                code=request.code,
                name=request.name,
                species=request.species,
                purpose=request.purpose,
                notes=request.notes,
                stage_id=None,
            )
            session.add(lot)
            try:
                await session.commit()
            except IntegrityError:
                # Same code registered concurrently
                await session.rollback()
                existing = await self._find_by_code(session, tenant_id, request.code)
                if existing is None:
                    raise
                return CreateLotResponse(created=False, lot=LotResponse.model_validate(existing))
            await session.refresh(lot)

        logger.info("lot_registered", tenant_id=str(tenant_id), lot_id=str(lot.id), code=lot.code)
        return CreateLotResponse(created=True, lot=LotResponse.model_validate(lot))

    async def get_lot(self, tenant_id: uuid.UUID, lot_id: uuid.UUID) -> LotResponse:
        """Raises LotNotFoundError when the lot is not in the tenant."""
        async with self.session_factory() as session:
            result = await session.execute(select(Lot).where(Lot.id == lot_id, Lot.tenant_id == tenant_id))
            lot = result.scalar_one_or_none()

        if lot is None:
            raise LotNotFoundError()
        return LotResponse.model_validate(lot)

    @staticmethod
    async def _find_by_code(session: AsyncSession, tenant_id: uuid.UUID, code: str) -> Lot | None:
        result = await session.execute(select(Lot).where(Lot.tenant_id == tenant_id, Lot.code == code))
        return result.scalar_one_or_none()
