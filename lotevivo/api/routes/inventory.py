"""Inventory balance API routes."""

from fastapi import APIRouter, Depends, Query

from lotevivo.api.routes.lots import get_balance_service
from lotevivo.core.auth import AuthContext, require_auth
from lotevivo.domain.balance import BalanceGrouping
from lotevivo.schemas.inventory import BalanceResponse
from lotevivo.services.balance_service import BalanceService

router = APIRouter()


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    group_by: BalanceGrouping = Query(default=BalanceGrouping.LOT),
    auth: AuthContext = Depends(require_auth),
    service: BalanceService = Depends(get_balance_service),
):
    """Signed movement totals per lot (``group_by=lot``) or per lot and location (``lot_location``).

    Lots without movements are absent from ``items``.
    """
    return await service.get_balance(auth.tenant_id, group_by)
