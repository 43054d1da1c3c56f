"""
Key-value store backends.

Each collection is saved as one JSON blob under a fixed key; every write
replaces the whole blob.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

from pill_tracker.exceptions import StorageError
from pill_tracker.utils.helpers import DateTimeEncoder

logger = logging.getLogger(__name__)

Base = declarative_base()


class StoreEntry(Base):
    __tablename__ = 'kv_store'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f'<StoreEntry {self.key}>'


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, cls=DateTimeEncoder)
    except (TypeError, ValueError) as e:
        raise StorageError('set', key, f"value is not JSON serializable: {e}") from e


def _decode(key: str, payload: str) -> Any:
    try:
        return json.loads(payload)
    except ValueError as e:
        raise StorageError('get', key, f"stored value is not valid JSON: {e}") from e


class KeyValueStore:
    """Durable get/set/remove of named JSON values"""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def set_many(self, items: Dict[str, Any]) -> None:
        """
        Write several keys.

        Backends that can do so write them in one transaction. Otherwise every
        write is attempted and the first failure is raised afterwards.
        """
        failures = []
        for key, value in items.items():
            try:
                self.set(key, value)
            except StorageError as e:
                logger.error(f"❌ Error saving '{key}': {e}")
                failures.append(e)
        if failures:
            raise failures[0]


class MemoryStore(KeyValueStore):
    """In-process store; values are kept serialized like a real store would"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        payload = self._data.get(key)
        if payload is None:
            return None
        return _decode(key, payload)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def set_many(self, items: Dict[str, Any]) -> None:
        encoded = {key: _encode(key, value) for key, value in items.items()}
        self._data.update(encoded)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SQLAlchemyStore(KeyValueStore):
    """Store backed by a single SQL table of key -> JSON text"""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        engine_kwargs = {'echo': echo}
        if database_url.startswith('sqlite'):
            engine_kwargs['connect_args'] = {'check_same_thread': False}
            if ':memory:' in database_url or database_url in ('sqlite://', 'sqlite:///'):
                engine_kwargs['poolclass'] = StaticPool
            else:
                self._create_database_folder(database_url)

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.init_database()

    @staticmethod
    def _create_database_folder(database_url: str):
        """Create the folder holding a sqlite file if it doesn't exist"""
        path = database_url.split(':///', 1)[-1]
        folder = os.path.dirname(path)
        if folder:
            os.makedirs(folder, exist_ok=True)

    def init_database(self):
        """Create the store table"""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info(f"✅ Store initialized at {self.engine.url}")
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to initialize store: {e}")
            raise StorageError('init', StoreEntry.__tablename__, str(e)) from e

    def get(self, key: str) -> Optional[Any]:
        session = self.SessionLocal()
        try:
            entry = session.get(StoreEntry, key)
            payload = entry.value if entry is not None else None
        except SQLAlchemyError as e:
            logger.error(f"❌ Error reading '{key}': {e}")
            raise StorageError('get', key, str(e)) from e
        finally:
            session.close()

        if payload is None:
            return None
        return _decode(key, payload)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, items: Dict[str, Any]) -> None:
        encoded = {key: _encode(key, value) for key, value in items.items()}
        session = self.SessionLocal()
        try:
            for key, payload in encoded.items():
                entry = session.get(StoreEntry, key)
                if entry is None:
                    session.add(StoreEntry(key=key, value=payload))
                else:
                    entry.value = payload
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            keys = ', '.join(encoded)
            logger.error(f"❌ Error saving '{keys}': {e}")
            raise StorageError('set', keys, str(e)) from e
        finally:
            session.close()

    def remove(self, key: str) -> None:
        session = self.SessionLocal()
        try:
            session.query(StoreEntry).filter_by(key=key).delete()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ Error removing '{key}': {e}")
            raise StorageError('remove', key, str(e)) from e
        finally:
            session.close()

    def close(self):
        self.engine.dispose()


def create_store(config_class) -> KeyValueStore:
    """Build the store selected by a configuration class"""
    backend = config_class.STORE_BACKEND
    if backend == 'memory':
        return MemoryStore()
    if backend == 'sqlalchemy':
        return SQLAlchemyStore(config_class.DATABASE_URL, echo=config_class.DATABASE_ECHO)
    raise ValueError(f"Unknown store backend: {backend}")
