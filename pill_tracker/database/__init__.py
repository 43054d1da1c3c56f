from pill_tracker.database.store import (
    KeyValueStore, MemoryStore, SQLAlchemyStore, StoreEntry, create_store,
)

__all__ = ['KeyValueStore', 'MemoryStore', 'SQLAlchemyStore', 'StoreEntry', 'create_store']
