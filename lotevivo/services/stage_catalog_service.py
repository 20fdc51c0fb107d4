"""StageCatalogService: ordered production stages per tenant, chain and purpose."""

import uuid
from typing import Any

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lotevivo.core.exceptions import DuplicateStageCodeError, StageNotFoundError, ValidationError
from lotevivo.db.models.production_stage import ProductionStage
from lotevivo.domain.stages import PurposeFilter, PurposeMode
from lotevivo.domain.templates import get_catalog_template
from lotevivo.schemas.production import (
    CreateStageRequest,
    SeedCatalogResponse,
    StageListResponse,
    StageResponse,
)

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "sort_order", "is_terminal", "is_active", "purpose"})


def select_active_stages(tenant_id: uuid.UUID, chain: str, purpose: PurposeFilter) -> Select:
    """Query for a chain's active stages in board order.

    Shared by the catalog listing and the kanban projection.
    """
    query = select(ProductionStage).where(
        ProductionStage.tenant_id == tenant_id,
        ProductionStage.chain == chain,
        ProductionStage.is_active.is_(True),
    )
    if purpose.mode == PurposeMode.NONE:
        query = query.where(ProductionStage.purpose.is_(None))
    elif purpose.mode == PurposeMode.EXACT:
        query = query.where(ProductionStage.purpose == purpose.value)
    return query.order_by(ProductionStage.sort_order.asc(), ProductionStage.created_at.asc())


class StageCatalogService:
    """Service layer for the stage catalog.

    Stages are never deleted; retiring one sets is_active=False so events
    that reference it keep resolving.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_stages(self, tenant_id: uuid.UUID, chain: str, purpose: PurposeFilter) -> StageListResponse:
        """List active stages for a chain, ordered by sort_order.

        An unseeded chain yields an empty list, not an error.
        """
        async with self.session_factory() as session:
            result = await session.execute(select_active_stages(tenant_id, chain, purpose))
            stages = result.scalars().all()

        return StageListResponse(items=[StageResponse.model_validate(s) for s in stages])

    async def create_stage(self, tenant_id: uuid.UUID, request: CreateStageRequest) -> StageResponse:
        """Create a stage.

        Raises:
            DuplicateStageCodeError: code already used in this chain and purpose
        """
        stage = ProductionStage(
            tenant_id=tenant_id,
            chain=request.chain,
            purpose=request.purpose,
            name=request.name,
            code=request.code,
            sort_order=request.sort_order,
            is_terminal=request.is_terminal,
            is_active=request.is_active,
        )

        async with self.session_factory() as session:
            session.add(stage)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateStageCodeError(
                    f"Stage code {request.code!r} already exists in chain {request.chain!r}"
                ) from exc
            await session.refresh(stage)

        logger.info(
            "stage_created",
            tenant_id=str(tenant_id),
            stage_id=str(stage.id),
            chain=stage.chain,
            purpose=stage.purpose,
            code=stage.code,
        )
        return StageResponse.model_validate(stage)

    async def update_stage(self, tenant_id: uuid.UUID, stage_id: uuid.UUID, changes: dict[str, Any]) -> StageResponse:
        """Apply only the provided fields to a stage.

        Args:
            tenant_id: Caller's tenant
            stage_id: Stage to update
            changes: Field -> value, typically ``model_dump(exclude_unset=True)``

        Raises:
            StageNotFoundError: stage missing or owned by another tenant
            ValidationError: a non-updatable field or a null for a required field
            DuplicateStageCodeError: a purpose change collides with another stage's code
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {sorted(unknown)}")
        nulled = [k for k, v in changes.items() if v is None and k != "purpose"]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {sorted(nulled)}")

        async with self.session_factory() as session:
            result = await session.execute(
                select(ProductionStage).where(
                    ProductionStage.id == stage_id,
                    ProductionStage.tenant_id == tenant_id,
                )
            )
            stage = result.scalar_one_or_none()
            if stage is None:
                raise StageNotFoundError()

            for field, value in changes.items():
                setattr(stage, field, value)
            # Rollback expires the instance, so read these before committing
            code, purpose = stage.code, stage.purpose

            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateStageCodeError(
                    f"Stage code {code!r} already exists for purpose {purpose!r}"
                ) from exc
            await session.refresh(stage)

        logger.info("stage_updated", tenant_id=str(tenant_id), stage_id=str(stage_id), fields=sorted(changes))
        return StageResponse.model_validate(stage)

    async def seed_catalog(self, tenant_id: uuid.UUID, template_name: str) -> SeedCatalogResponse:
        """Create a template's stages that the tenant does not have yet.

        Idempotent: stages whose code already exists for the template's chain and
        purpose (active or retired) are skipped.

        Raises:
            ValidationError: unknown template
            DuplicateStageCodeError: a concurrent seed inserted the same codes first
        """
        try:
            template = get_catalog_template(template_name)
        except KeyError:
            raise ValidationError(f"Unknown stage template {template_name!r}")

        if template.purpose is None:
            same_purpose = ProductionStage.purpose.is_(None)
        else:
            same_purpose = ProductionStage.purpose == template.purpose

        async with self.session_factory() as session:
            result = await session.execute(
                select(ProductionStage.code).where(
                    ProductionStage.tenant_id == tenant_id,
                    ProductionStage.chain == template.chain,
                    same_purpose,
                )
            )
            existing_codes = set(result.scalars().all())

            created: list[ProductionStage] = []
            skipped: list[str] = []
            for item in template.stages:
                if item.code in existing_codes:
                    skipped.append(item.code)
                    continue
                stage = ProductionStage(
                    tenant_id=tenant_id,
                    chain=template.chain,
                    purpose=template.purpose,
                    name=item.name,
                    code=item.code,
                    sort_order=item.sort_order,
                    is_terminal=item.is_terminal,
                    is_active=True,
                )
                session.add(stage)
                created.append(stage)

            try:
                await session.commit()
            except IntegrityError as exc:
                # Same template seeded concurrently
                await session.rollback()
                raise DuplicateStageCodeError(
                    f"Stage template {template_name!r} is being seeded concurrently; retry to skip existing codes"
                ) from exc
            for stage in created:
                await session.refresh(stage)

        logger.info(
            "stage_catalog_seeded",
            tenant_id=str(tenant_id),
            template=template_name,
            created=len(created),
            skipped=len(skipped),
        )
        return SeedCatalogResponse(
            template=template_name,
            created=[StageResponse.model_validate(s) for s in created],
            skipped_codes=skipped,
        )
