"""Re-export all models so Base.metadata sees them."""

from lotevivo.db.models.lot import Lot
from lotevivo.db.models.lot_stage_event import LotStageEvent
from lotevivo.db.models.movement import Movement
from lotevivo.db.models.production_stage import ProductionStage

__all__ = [
    "Lot",
    "LotStageEvent",
    "Movement",
    "ProductionStage",
]
