"""
Pytest configuration and shared fixtures for the pill tracker tests

Every test gets a fresh in-memory store, so no state is shared between tests.
"""

from datetime import date, datetime

import pytest

from pill_tracker.database.store import MemoryStore
from pill_tracker.models import Pill, PillIntake, PillPack, TimeOfDay
from pill_tracker.services.repository import Collection, EntityRepository
from pill_tracker.services.tracker_service import TrackerService

# Fixed clock used across tests
TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 9, 30)


def make_pill(**overrides) -> Pill:
    """Pill snapshot with sensible defaults, not stored"""
    data = {
        'id': 'pill-1',
        'name': 'Vitamin D',
        'dosage': '1000 IU',
        'timesPerDay': 2,
        'timesOfDay': ['morning', 'evening'],
        'defaultPackSize': 30,
        'currentPackAmount': 30,
    }
    data.update(overrides)
    return Pill.from_record(data)


def make_intake(pill_id='pill-1', taken_at=NOW, time_of_day=TimeOfDay.MORNING, **overrides) -> PillIntake:
    data = {
        'id': f'intake-{pill_id}-{taken_at.isoformat()}-{TimeOfDay(time_of_day).value}',
        'pillId': pill_id,
        'takenAt': taken_at,
        'timeOfDay': time_of_day,
    }
    data.update(overrides)
    return PillIntake.from_record(data)


def make_pack(pill_id='pill-1', pack_size=30, **overrides) -> PillPack:
    data = {
        'id': 'pack-1',
        'pillId': pill_id,
        'packSize': pack_size,
        'startDate': datetime(2024, 3, 1, 8, 0),
        'isActive': True,
    }
    data.update(overrides)
    return PillPack.from_record(data)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repository(store):
    return EntityRepository(store)


@pytest.fixture
def tracker(repository):
    return TrackerService(repository)


@pytest.fixture
def pack_tracker(repository):
    return TrackerService(repository, pack_mode=True)


@pytest.fixture
def pill_data():
    """Form data for a new pill"""
    return {
        'name': 'Metformin',
        'dosage': '500mg',
        'type': 'tablet',
        'timesPerDay': 2,
        'timesOfDay': ['morning', 'evening'],
        'instructions': 'Take with food',
        'defaultPackSize': 30,
        'currentPackAmount': 30,
    }


@pytest.fixture
def stored_pill(repository, pill_data):
    """A pill saved in the repository"""
    return repository.create(Collection.PILLS, pill_data)
