"""
Pill intake model: an immutable record of one dose taken
"""

from datetime import date
from typing import ClassVar, Dict, Optional

from pydantic import Field

from pill_tracker.models.base import LocalDateTime, RecordModel
from pill_tracker.models.pill import TimeOfDay


class PillIntake(RecordModel):
    pill_id: str = Field(alias='pillId')
    pack_id: Optional[str] = Field(None, alias='packId')
    taken_at: LocalDateTime = Field(alias='takenAt')
    time_of_day: TimeOfDay = Field(alias='timeOfDay')
    notes: Optional[str] = ''

    required_messages: ClassVar[Dict[str, str]] = {
        'pillId': 'Pill is required',
        'takenAt': 'Time taken is required',
        'timeOfDay': 'Time of day is required',
    }

    def __repr__(self):
        return f'<PillIntake {self.pill_id} {self.time_of_day.value} at {self.taken_at}>'

    @property
    def taken_on(self) -> date:
        """Local calendar day the dose was taken"""
        return self.taken_at.date()

    def check(self) -> Dict[str, str]:
        errors = {}
        if not self.pill_id:
            errors['pillId'] = 'Pill is required'
        return errors
