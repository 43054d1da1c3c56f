from pill_tracker.models.adherence import (
    AdherenceStatus, DailyCell, HistoryRow, Period, PERIOD_DAYS, SummaryStats, TodayPill,
)
from pill_tracker.models.daily_schedule import DailySchedule, DoseSlot
from pill_tracker.models.inventory import (
    IntakeDecision, InventoryStats, RejectionReason, StockStatus,
)
from pill_tracker.models.pill import (
    DEFAULT_PACK_SIZE, DEFAULT_PILL_COLOR, PILL_COLORS, Pill, PillShape, PillType, TimeOfDay,
)
from pill_tracker.models.pill_intake import PillIntake
from pill_tracker.models.pill_pack import PillPack

__all__ = [
    'AdherenceStatus', 'DailyCell', 'HistoryRow', 'Period', 'PERIOD_DAYS', 'SummaryStats', 'TodayPill',
    'DailySchedule', 'DoseSlot',
    'IntakeDecision', 'InventoryStats', 'RejectionReason', 'StockStatus',
    'DEFAULT_PACK_SIZE', 'DEFAULT_PILL_COLOR', 'PILL_COLORS', 'Pill', 'PillShape', 'PillType', 'TimeOfDay',
    'PillIntake', 'PillPack',
]
