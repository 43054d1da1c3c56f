"""
Pill model for the pill tracker
"""

from enum import Enum
from typing import ClassVar, Dict, List, Optional

from pydantic import Field

from pill_tracker.models.base import RecordModel

DEFAULT_PILL_COLOR = '#2196F3'
DEFAULT_PACK_SIZE = 30
MAX_TIMES_PER_DAY = 4

PILL_COLORS = [
    '#2196F3', '#4CAF50', '#FF9800', '#F44336', '#9C27B0',
    '#00BCD4', '#8BC34A', '#FF5722', '#E91E63', '#3F51B5',
]


class PillType(str, Enum):
    TABLET = 'tablet'
    CAPSULE = 'capsule'
    LIQUID = 'liquid'
    INJECTION = 'injection'
    OTHER = 'other'


class TimeOfDay(str, Enum):
    MORNING = 'morning'
    AFTERNOON = 'afternoon'
    EVENING = 'evening'
    NIGHT = 'night'

    @property
    def label(self) -> str:
        return self.value.title()


class PillShape(str, Enum):
    ROUND = 'round'
    OVAL = 'oval'
    SQUARE = 'square'
    TRIANGLE = 'triangle'
    DIAMOND = 'diamond'


class Pill(RecordModel):
    name: str
    dosage: str
    type: PillType = PillType.TABLET
    times_per_day: int = Field(1, alias='timesPerDay')
    times_of_day: List[TimeOfDay] = Field(default_factory=lambda: [TimeOfDay.MORNING], alias='timesOfDay')
    instructions: Optional[str] = ''
    color: str = DEFAULT_PILL_COLOR
    shape: PillShape = PillShape.ROUND
    default_pack_size: int = Field(DEFAULT_PACK_SIZE, alias='defaultPackSize')
    current_pack_amount: int = Field(DEFAULT_PACK_SIZE, alias='currentPackAmount')

    required_messages: ClassVar[Dict[str, str]] = {
        'name': 'Pill name is required',
        'dosage': 'Dosage is required',
    }

    def __repr__(self):
        return f'<Pill {self.name} - {self.dosage}>'

    @property
    def expected_doses(self) -> int:
        """Number of doses scheduled per day"""
        return len(self.times_of_day)

    def get_display_name(self) -> str:
        """Get formatted display name"""
        return f"{self.name} ({self.dosage})"

    def check(self) -> Dict[str, str]:
        errors = {}

        if not self.name.strip():
            errors['name'] = 'Pill name is required'

        if not self.dosage.strip():
            errors['dosage'] = 'Dosage is required'

        if self.times_per_day < 1 or self.times_per_day > MAX_TIMES_PER_DAY:
            errors['timesPerDay'] = f'Times per day must be between 1 and {MAX_TIMES_PER_DAY}'

        if not self.times_of_day:
            errors['timesOfDay'] = 'At least one time of day is required'
        elif len(set(self.times_of_day)) != len(self.times_of_day):
            errors['timesOfDay'] = 'Each time of day can only be selected once'
        elif len(self.times_of_day) > self.times_per_day:
            errors['timesOfDay'] = f'Select at most {self.times_per_day} times of day'

        if self.default_pack_size < 1:
            errors['defaultPackSize'] = 'Default pack size must be at least 1'

        if self.current_pack_amount < 0:
            errors['currentPackAmount'] = 'Current pack amount cannot be negative'
        elif self.current_pack_amount > self.default_pack_size:
            errors['currentPackAmount'] = 'Current pack amount cannot exceed default pack size'

        return errors
