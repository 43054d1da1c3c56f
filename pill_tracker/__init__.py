"""
Pill tracker: pill inventory, intake logging and adherence history
"""

from pill_tracker.app import PillTrackerApp, create_app
from pill_tracker.exceptions import NotFoundError, PillTrackerError, StorageError, ValidationError
from pill_tracker.services.repository import Collection, EntityRepository
from pill_tracker.services.tracker_service import TrackerService

__version__ = '1.0.0'

__all__ = [
    'PillTrackerApp', 'create_app',
    'NotFoundError', 'PillTrackerError', 'StorageError', 'ValidationError',
    'Collection', 'EntityRepository', 'TrackerService',
]
