"""
Utility helper functions for the pill tracker
"""

import json
import uuid
from datetime import date, datetime
from typing import Union


def generate_id() -> str:
    """Generate a unique record id"""
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current local time as an ISO-8601 string"""
    return datetime.now().isoformat()


def to_local_datetime(value: Union[str, datetime]) -> datetime:
    """
    Normalise a timestamp to a naive local datetime.

    Aware datetimes are converted to the local timezone first so that calendar
    day comparisons use the user's local day.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def to_local_date(value: Union[str, date, datetime]) -> date:
    """Calendar day (local time) of a timestamp or date"""
    if isinstance(value, datetime) or isinstance(value, str):
        return to_local_datetime(value).date()
    return value


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder for datetime objects"""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)
