"""
Pill pack model: one physical pack instance drawn down by intakes
"""

from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional

from pydantic import Field, model_validator

from pill_tracker.models.base import LocalDateTime, RecordModel


class PillPack(RecordModel):
    pill_id: str = Field(alias='pillId')
    pack_size: int = Field(alias='packSize')
    remaining_pills: int = Field(alias='remainingPills')
    start_date: LocalDateTime = Field(default_factory=datetime.now, alias='startDate')
    expiry_date: Optional[LocalDateTime] = Field(None, alias='expiryDate')
    is_active: bool = Field(True, alias='isActive')
    deactivated_at: Optional[LocalDateTime] = Field(None, alias='deactivatedAt')

    required_messages: ClassVar[Dict[str, str]] = {
        'pillId': 'Pill is required',
        'packSize': 'Pack size must be greater than 0',
    }

    @model_validator(mode='before')
    @classmethod
    def _fill_remaining(cls, data: Any) -> Any:
        # A fresh pack starts full
        if isinstance(data, dict):
            has_remaining = 'remainingPills' in data or 'remaining_pills' in data
            size = data.get('packSize', data.get('pack_size'))
            if not has_remaining and size is not None:
                data = {**data, 'remainingPills': size}
        return data

    def __repr__(self):
        return f'<PillPack {self.id} - {self.remaining_pills}/{self.pack_size} for pill {self.pill_id}>'

    def was_active_on(self, day: date) -> bool:
        """Whether this pack was the one being drawn down on ``day``"""
        if self.start_date.date() > day:
            return False
        if self.is_active:
            return True
        return self.deactivated_at is not None and self.deactivated_at.date() >= day

    def is_expired(self, on: Optional[date] = None) -> bool:
        """Check if the pack is past its expiry date"""
        if self.expiry_date is None:
            return False
        on = on or date.today()
        return self.expiry_date.date() < on

    def check(self) -> Dict[str, str]:
        errors = {}

        if not self.pill_id:
            errors['pillId'] = 'Pill is required'

        if self.pack_size < 1:
            errors['packSize'] = 'Pack size must be greater than 0'

        if self.remaining_pills < 0:
            errors['remainingPills'] = 'Remaining pills cannot be negative'
        elif self.pack_size >= 1 and self.remaining_pills > self.pack_size:
            errors['remainingPills'] = 'Remaining pills cannot exceed pack size'

        if self.expiry_date is not None and self.expiry_date < self.start_date:
            errors['expiryDate'] = 'Expiry date must be after start date'

        return errors
