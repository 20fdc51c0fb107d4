"""LotStageService: moves lots between production stages and keeps their history.

This is the integration point where the pure transition rules meet SQLAlchemy.
The lot's stage_id is the materialized "where is it now"; lot_stage_events is
the append-only record of how it got there. Both are written in one
transaction, so a failed event append also rolls back the stage change.
"""

import uuid
from datetime import UTC, date, datetime
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lotevivo.core.exceptions import (
    ConcurrentTransitionError,
    InactiveStageError,
    LotAlreadyInStageError,
    LotNotFoundError,
    StageNotFoundError,
)
from lotevivo.core.locking import LotLock
from lotevivo.db.models.lot import Lot
from lotevivo.db.models.lot_stage_event import LotStageEvent
from lotevivo.db.models.production_stage import ProductionStage
from lotevivo.domain.stages import TransitionRejection, normalize_meta, validate_transition
from lotevivo.schemas.production import StageEventListResponse, StageEventResponse

logger = structlog.get_logger(__name__)

_REJECTION_ERRORS = {
    TransitionRejection.ALREADY_IN_STAGE: LotAlreadyInStageError,
    TransitionRejection.STAGE_NOT_FOUND: StageNotFoundError,
    TransitionRejection.STAGE_INACTIVE: InactiveStageError,
}


def to_event_response(event: LotStageEvent) -> StageEventResponse:
    """Render an event with meta normalized to a dict."""
    return StageEventResponse(
        id=event.id,
        lot_id=event.lot_id,
        from_stage_id=event.from_stage_id,
        to_stage_id=event.to_stage_id,
        event_date=event.event_date,
        notes=event.notes,
        meta=normalize_meta(event.meta),
        created_at=event.created_at,
    )


class LotStageService:
    """Service layer for lot stage transitions.

    Concurrent moves of the same lot are serialized by an optional Redis lot
    lock, and guarded by a compare-and-swap on the lot's previous stage_id
    either way.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], lot_lock: LotLock | None = None):
        """Initialize with dependency injection.

        Args:
            session_factory: SQLAlchemy async session factory
            lot_lock: Per-lot advisory lock, None to rely on the CAS alone
        """
        self.session_factory = session_factory
        self.lot_lock = lot_lock

    async def move_lot_to_stage(
        self,
        tenant_id: uuid.UUID,
        lot_id: uuid.UUID,
        to_stage_id: uuid.UUID,
        event_date: date,
        notes: str | None = None,
        meta: Any = None,
        user_id: str | None = None,
    ) -> StageEventResponse:
        """Move a lot to a stage and append the transition event.

        Args:
            tenant_id: Caller's tenant; lot and stage must both belong to it
            lot_id: Lot to move
            to_stage_id: Destination stage
            event_date: Business date of the move
            notes: Optional free text
            meta: Caller context; anything but a string-keyed dict becomes {}
            user_id: Acting user, for logs only

        Returns:
            The created event

        Raises:
            LotNotFoundError: lot missing or in another tenant
            LotAlreadyInStageError: lot already in the destination stage
            StageNotFoundError: destination missing or in another tenant
            InactiveStageError: destination retired
            ConcurrentTransitionError: lot moved by someone else mid-request
            LotBusyError: lot lock not acquired in time
        """
        if self.lot_lock is None:
            return await self._move(tenant_id, lot_id, to_stage_id, event_date, notes, meta, user_id)

        async with self.lot_lock.hold(tenant_id, lot_id):
            return await self._move(tenant_id, lot_id, to_stage_id, event_date, notes, meta, user_id)

    async def _move(
        self,
        tenant_id: uuid.UUID,
        lot_id: uuid.UUID,
        to_stage_id: uuid.UUID,
        event_date: date,
        notes: str | None,
        meta: Any,
        user_id: str | None,
    ) -> StageEventResponse:
        log = logger.bind(tenant_id=str(tenant_id), lot_id=str(lot_id), to_stage_id=str(to_stage_id), user_id=user_id)

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(select(Lot).where(Lot.id == lot_id, Lot.tenant_id == tenant_id))
                lot = result.scalar_one_or_none()
                if lot is None:
                    raise LotNotFoundError()

                from_stage_id = lot.stage_id

                result = await session.execute(
                    select(ProductionStage).where(
                        ProductionStage.id == to_stage_id,
                        ProductionStage.tenant_id == tenant_id,
                    )
                )
                target = result.scalar_one_or_none()

                validation = validate_transition(from_stage_id, to_stage_id, target)
                if not validation.allowed:
                    log.info("lot_stage_move_rejected", reason=validation.rejection.value)
                    raise _REJECTION_ERRORS[validation.rejection](validation.reason)

                clean_meta = normalize_meta(meta)

                # Stage first, then the event; both commit together
                same_stage = Lot.stage_id.is_(None) if from_stage_id is None else Lot.stage_id == from_stage_id
                result = await session.execute(
                    update(Lot)
                    .where(Lot.id == lot_id, Lot.tenant_id == tenant_id, same_stage)
                    .values(stage_id=to_stage_id, updated_at=datetime.now(UTC))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    log.warning("lot_stage_move_conflict", from_stage_id=str(from_stage_id) if from_stage_id else None)
                    raise ConcurrentTransitionError()

                event = LotStageEvent(
                    tenant_id=tenant_id,
                    lot_id=lot_id,
                    from_stage_id=from_stage_id,
                    to_stage_id=to_stage_id,
                    event_date=event_date,
                    notes=notes,
                    meta=clean_meta,
                )
                session.add(event)
                await session.flush()

        log.info(
            "lot_stage_moved",
            event_id=str(event.id),
            from_stage_id=str(from_stage_id) if from_stage_id else None,
            event_date=event_date.isoformat(),
        )
        return to_event_response(event)

    async def list_lot_stage_events(self, tenant_id: uuid.UUID, lot_id: uuid.UUID) -> StageEventListResponse:
        """Full stage history of a lot, most recent first.

        Ordered by event_date, then created_at, both descending.

        Raises:
            LotNotFoundError: lot missing or in another tenant
        """
        async with self.session_factory() as session:
            result = await session.execute(select(Lot.id).where(Lot.id == lot_id, Lot.tenant_id == tenant_id))
            if result.scalar_one_or_none() is None:
                raise LotNotFoundError()

            result = await session.execute(
                select(LotStageEvent)
                .where(LotStageEvent.tenant_id == tenant_id, LotStageEvent.lot_id == lot_id)
                .order_by(LotStageEvent.event_date.desc(), LotStageEvent.created_at.desc())
            )
            events = result.scalars().all()

        return StageEventListResponse(lot_id=lot_id, items=[to_event_response(e) for e in events])
