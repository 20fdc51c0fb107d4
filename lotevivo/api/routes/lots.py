"""Lot API routes: registration, stage transitions and stage history.

POST /api/lots                          - Register a lot (idempotent by code)
GET  /api/lots/{lot_id}                 - Lot detail
POST /api/lots/{lot_id}/stage           - Move the lot to a stage
GET  /api/lots/{lot_id}/stage-events    - Stage history, most recent first
GET  /api/lots/{lot_id}/balance         - Current quantity balance
"""

import uuid

from fastapi import APIRouter, Depends, Response

from lotevivo.core.auth import ROLE_ADMIN, ROLE_OPERATOR, AuthContext, require_auth
from lotevivo.core.locking import LotLock, get_lot_lock
from lotevivo.core.permissions import require_role
from lotevivo.db.base import get_session_factory
from lotevivo.schemas.inventory import CreateLotRequest, CreateLotResponse, LotBalanceResponse, LotResponse
from lotevivo.schemas.production import MoveLotRequest, StageEventListResponse, StageEventResponse
from lotevivo.services.balance_service import BalanceService
from lotevivo.services.lot_service import LotService
from lotevivo.services.lot_stage_service import LotStageService

router = APIRouter()


def get_lot_service() -> LotService:
    return LotService(get_session_factory())


def get_lot_stage_service(lot_lock: LotLock | None = Depends(get_lot_lock)) -> LotStageService:
    """Dependency that provides the transition service.

    Override this dependency in tests via app.dependency_overrides.
    """
    return LotStageService(get_session_factory(), lot_lock=lot_lock)


def get_balance_service() -> BalanceService:
    return BalanceService(get_session_factory())


@router.post("", response_model=CreateLotResponse, status_code=201)
async def register_lot(
    request: CreateLotRequest,
    response: Response,
    auth: AuthContext = Depends(require_role(ROLE_ADMIN, ROLE_OPERATOR)),
    service: LotService = Depends(get_lot_service),
):
    """Register a lot with no stage. An existing code returns 200 with created=false."""
    result = await service.register_lot(auth.tenant_id, request)
    if not result.created:
        response.status_code = 200
    return result


@router.get("/{lot_id}", response_model=LotResponse)
async def get_lot(
    lot_id: uuid.UUID,
    auth: AuthContext = Depends(require_auth),
    service: LotService = Depends(get_lot_service),
):
    return await service.get_lot(auth.tenant_id, lot_id)


@router.post("/{lot_id}/stage", response_model=StageEventResponse)
async def move_lot_to_stage(
    lot_id: uuid.UUID,
    request: MoveLotRequest,
    auth: AuthContext = Depends(require_role(ROLE_ADMIN, ROLE_OPERATOR)),
    service: LotStageService = Depends(get_lot_stage_service),
):
    """Move a lot to a stage, recording the transition event.

    Raises:
        404: lot_not_found / stage_not_found
        409: lot_already_in_stage / lot_changed_concurrently / lot_busy
        422: stage_inactive, or a malformed body
    """
    return await service.move_lot_to_stage(
        tenant_id=auth.tenant_id,
        lot_id=lot_id,
        to_stage_id=request.to_stage_id,
        event_date=request.event_date,
        notes=request.notes,
        meta=request.meta,
        user_id=auth.user_id,
    )


@router.get("/{lot_id}/stage-events", response_model=StageEventListResponse)
async def list_lot_stage_events(
    lot_id: uuid.UUID,
    auth: AuthContext = Depends(require_auth),
    service: LotStageService = Depends(get_lot_stage_service),
):
    """Stage history ordered by event_date then created_at, newest first. meta is always an object."""
    return await service.list_lot_stage_events(auth.tenant_id, lot_id)


@router.get("/{lot_id}/balance", response_model=LotBalanceResponse)
async def get_lot_balance(
    lot_id: uuid.UUID,
    auth: AuthContext = Depends(require_auth),
    service: BalanceService = Depends(get_balance_service),
):
    return await service.get_lot_balance(auth.tenant_id, lot_id)
