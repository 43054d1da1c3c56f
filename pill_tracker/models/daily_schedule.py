"""
Daily schedule: date-keyed snapshot of planned vs completed doses.

Always rebuildable from pills and intakes; never a source of truth.
"""

from datetime import date
from typing import ClassVar, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from pill_tracker.models.base import RecordModel
from pill_tracker.models.pill import TimeOfDay


class DoseSlot(BaseModel):
    pill_id: str = Field(alias='pillId')
    time_of_day: TimeOfDay = Field(alias='timeOfDay')

    model_config = ConfigDict(populate_by_name=True)


class DailySchedule(RecordModel):
    schedule_date: str = Field(alias='date')
    pills: List[str] = Field(default_factory=list)
    completed: List[DoseSlot] = Field(default_factory=list)
    missed: List[DoseSlot] = Field(default_factory=list)

    required_messages: ClassVar[Dict[str, str]] = {'date': 'Date is required'}

    @property
    def day(self) -> date:
        return date.fromisoformat(self.schedule_date)

    def check(self) -> Dict[str, str]:
        try:
            date.fromisoformat(self.schedule_date)
        except ValueError:
            return {'date': 'Date must be in YYYY-MM-DD format'}
        return {}
