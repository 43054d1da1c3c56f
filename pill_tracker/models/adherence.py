"""
Adherence view models for history and summary screens
"""

from datetime import date
from enum import Enum
from typing import List

from pydantic import BaseModel

from pill_tracker.models.inventory import StockStatus
from pill_tracker.models.pill import Pill, TimeOfDay


class Period(str, Enum):
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'

    @property
    def days(self) -> int:
        return PERIOD_DAYS[self]


PERIOD_DAYS = {
    Period.WEEK: 7,
    Period.MONTH: 30,
    Period.YEAR: 365,
}


class AdherenceStatus(str, Enum):
    NONE = 'none'
    PARTIAL = 'partial'
    FULL = 'full'


class DailyCell(BaseModel):
    """Per-pill, per-day summary of doses taken vs expected"""
    pill_id: str
    day: date
    taken_count: int
    expected_count: int
    remaining_at_date: int
    status: AdherenceStatus


class HistoryRow(BaseModel):
    day: date
    cells: List[DailyCell]


class SummaryStats(BaseModel):
    total_intakes: int
    unique_pill_count: int
    today_intake_count: int


class TodayPill(BaseModel):
    """A pill as shown on the today screen"""
    pill: Pill
    taken_times: List[TimeOfDay]
    remaining: int
    stock_status: StockStatus

    @property
    def is_complete(self) -> bool:
        return all(time_of_day in self.taken_times for time_of_day in self.pill.times_of_day)
