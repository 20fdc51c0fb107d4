"""Production stage catalog and kanban API routes.

GET   /api/production/stages             - Active stages of a chain, in order
POST  /api/production/stages             - Create a stage (admin)
POST  /api/production/stages/seed        - Seed a chain from a template (admin)
PATCH /api/production/stages/{stage_id}  - Partially update a stage (admin)
GET   /api/production/kanban             - Lots grouped by current stage
"""

import uuid

from fastapi import APIRouter, Depends, Query

from lotevivo.core.auth import ROLE_ADMIN, AuthContext, require_auth
from lotevivo.core.permissions import require_role
from lotevivo.db.base import get_session_factory
from lotevivo.domain.stages import PurposeFilter
from lotevivo.schemas.production import (
    CreateStageRequest,
    KanbanBoardResponse,
    SeedCatalogRequest,
    SeedCatalogResponse,
    StageListResponse,
    StageResponse,
    UpdateStageRequest,
)
from lotevivo.services.kanban_service import KanbanService
from lotevivo.services.stage_catalog_service import StageCatalogService

router = APIRouter()


def get_stage_catalog_service() -> StageCatalogService:
    """Dependency that provides the catalog service.

    Override this dependency in tests via app.dependency_overrides.
    """
    return StageCatalogService(get_session_factory())


def get_kanban_service() -> KanbanService:
    return KanbanService(get_session_factory())


def purpose_filter(
    purpose: str | None = Query(default=None, min_length=1, description="Only stages with this purpose"),
    without_purpose: bool = Query(default=False, description="Only stages without purpose"),
) -> PurposeFilter:
    """Tri-state purpose filter from query params; omitting both means no filter."""
    return PurposeFilter.from_query(purpose, without_purpose)


@router.get("/stages", response_model=StageListResponse)
async def list_stages(
    chain: str = Query(..., min_length=1),
    purpose: PurposeFilter = Depends(purpose_filter),
    auth: AuthContext = Depends(require_auth),
    service: StageCatalogService = Depends(get_stage_catalog_service),
):
    """List active stages of a chain ordered by sort_order.

    An unseeded chain returns ``{"items": []}``.
    """
    return await service.list_stages(auth.tenant_id, chain, purpose)


@router.post("/stages", response_model=StageResponse, status_code=201)
async def create_stage(
    request: CreateStageRequest,
    auth: AuthContext = Depends(require_role(ROLE_ADMIN)),
    service: StageCatalogService = Depends(get_stage_catalog_service),
):
    """Create a stage.

    Raises:
        403: caller is not a tenant admin
        409: code already used in this chain and purpose
    """
    return await service.create_stage(auth.tenant_id, request)


@router.post("/stages/seed", response_model=SeedCatalogResponse, status_code=201)
async def seed_stage_catalog(
    request: SeedCatalogRequest,
    auth: AuthContext = Depends(require_role(ROLE_ADMIN)),
    service: StageCatalogService = Depends(get_stage_catalog_service),
):
    """Create a template's missing stages. Safe to call repeatedly."""
    return await service.seed_catalog(auth.tenant_id, request.template)


@router.patch("/stages/{stage_id}", response_model=StageResponse)
async def update_stage(
    stage_id: uuid.UUID,
    request: UpdateStageRequest,
    auth: AuthContext = Depends(require_role(ROLE_ADMIN)),
    service: StageCatalogService = Depends(get_stage_catalog_service),
):
    """Apply the fields present in the body (name, sort_order, is_terminal, is_active, purpose).

    Raises:
        404: stage not found in the caller's tenant
    """
    return await service.update_stage(auth.tenant_id, stage_id, request.model_dump(exclude_unset=True))


@router.get("/kanban", response_model=KanbanBoardResponse)
async def get_kanban_board(
    chain: str = Query(..., min_length=1),
    purpose: PurposeFilter = Depends(purpose_filter),
    auth: AuthContext = Depends(require_auth),
    service: KanbanService = Depends(get_kanban_service),
):
    """One column per active stage (empty ones included), lots annotated with balance.

    A chain without stages returns ``{"columns": []}``.
    """
    return await service.get_board(auth.tenant_id, chain, purpose)
