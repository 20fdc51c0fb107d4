from fastapi import APIRouter

from lotevivo.api.routes import health, inventory, lots, production

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(production.router, prefix="/production", tags=["production"])
api_router.include_router(lots.router, prefix="/lots", tags=["lots"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
