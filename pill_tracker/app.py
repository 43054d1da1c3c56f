"""
Application factory for the pill tracker core
"""

import logging

from pill_tracker.database.store import KeyValueStore, create_store
from pill_tracker.services.repository import EntityRepository
from pill_tracker.services.tracker_service import TrackerService
from pill_tracker.utils.config import config_map

logger = logging.getLogger(__name__)


class PillTrackerApp:
    """Composition root handed to the presentation layer"""

    def __init__(self, config_class, store: KeyValueStore):
        self.config = config_class
        self.store = store
        self.repository = EntityRepository(store)
        self.tracker = TrackerService(
            self.repository,
            pack_mode=config_class.PACK_TRACKING_ENABLED,
            default_pack_size=config_class.DEFAULT_PACK_SIZE,
            default_color=config_class.DEFAULT_PILL_COLOR,
        )


def setup_logging(config_class):
    logging.basicConfig(
        level=getattr(logging, config_class.LOG_LEVEL.upper(), logging.INFO),
        format=config_class.LOG_FORMAT
    )


def create_app(config_name='development', store: KeyValueStore = None) -> PillTrackerApp:
    """Application factory"""
    config_class = config_map.get(config_name, config_map['default'])

    setup_logging(config_class)

    if store is None:
        store = create_store(config_class)

    app = PillTrackerApp(config_class, store)
    logger.info(f"🚀 Pill tracker started ({config_name}, pack tracking {'on' if app.tracker.pack_mode else 'off'})")
    return app
