"""Portfolio read-models: Snapshot, Review and the lot engine."""

from folio.services.portfolio.lot_tracker import (
    AverageCostPool,
    CostBasisMethod,
    CostTracker,
    LotTracker,
    new_cost_tracker,
)
from folio.services.portfolio.models import AssetReview, Holding, Lot, Performance
from folio.services.portfolio.review import Review
from folio.services.portfolio.snapshot import Snapshot

__all__ = [
    "AssetReview",
    "AverageCostPool",
    "CostBasisMethod",
    "CostTracker",
    "Holding",
    "Lot",
    "LotTracker",
    "Performance",
    "Review",
    "Snapshot",
    "new_cost_tracker",
]
