"""
Inventory decision and stock models
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from pill_tracker.models.pill import Pill
from pill_tracker.models.pill_intake import PillIntake
from pill_tracker.models.pill_pack import PillPack


class StockStatus(str, Enum):
    EMPTY = 'empty'
    LOW = 'low'
    MEDIUM = 'medium'
    GOOD = 'good'


class RejectionReason(str, Enum):
    OUT_OF_STOCK = 'out_of_stock'
    ALREADY_TAKEN = 'already_taken'
    NO_ACTIVE_PACK = 'no_active_pack'


REJECTION_MESSAGES = {
    RejectionReason.OUT_OF_STOCK: 'No pills available. Please reset your pack or check your inventory',
    RejectionReason.ALREADY_TAKEN: 'This pill has already been taken for this time period',
    RejectionReason.NO_ACTIVE_PACK: 'No active pack for this pill. Please start a new pack',
}


class IntakeDecision(BaseModel):
    """
    Outcome of a take-pill request.

    When ``accepted`` is true the caller persists ``intake`` plus the new
    counters in ``pill`` (and ``pack`` in pack mode). Otherwise ``reason``
    says why nothing may change.
    """
    accepted: bool
    reason: Optional[RejectionReason] = None
    pill: Optional[Pill] = None
    pack: Optional[PillPack] = None
    intake: Optional[PillIntake] = None

    @classmethod
    def reject(cls, reason: RejectionReason) -> 'IntakeDecision':
        return cls(accepted=False, reason=reason)

    @property
    def message(self) -> str:
        if self.accepted:
            return 'Pill marked as taken'
        return REJECTION_MESSAGES[self.reason]


class InventoryStats(BaseModel):
    total_pills: int
    total_packs: int
    total_intakes: int
    active_packs: int
