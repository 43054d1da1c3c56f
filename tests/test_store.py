"""
Tests for the key-value store backends
"""

import pytest

from pill_tracker.database.store import KeyValueStore, MemoryStore, SQLAlchemyStore, create_store
from pill_tracker.exceptions import StorageError
from pill_tracker.utils.config import TestingConfig


class FailingStore(MemoryStore):
    """Memory store whose writes to selected keys fail"""

    def __init__(self, failing_keys=()):
        super().__init__()
        self.failing_keys = set(failing_keys)
        self.attempted = []

    def set(self, key, value):
        self.attempted.append(key)
        if key in self.failing_keys:
            raise StorageError('set', key, 'disk full')
        super().set(key, value)

    set_many = KeyValueStore.set_many


class TestMemoryStore:
    """In-process store"""

    def test_missing_key_returns_none(self):
        assert MemoryStore().get('pills') is None

    def test_values_are_copies(self):
        store = MemoryStore()
        records = [{'id': '1'}]
        store.set('pills', records)
        records.append({'id': '2'})
        assert store.get('pills') == [{'id': '1'}]

    def test_remove(self):
        store = MemoryStore()
        store.set('pills', [])
        store.remove('pills')
        assert store.get('pills') is None
        store.remove('pills')

    def test_unserializable_value_raises_storage_error(self):
        with pytest.raises(StorageError):
            MemoryStore().set('pills', [object()])

    def test_set_many_attempts_every_key(self):
        store = FailingStore(failing_keys={'pills'})
        with pytest.raises(StorageError):
            store.set_many({'pills': [], 'pillIntakes': [{'id': 'i1'}]})
        assert store.attempted == ['pills', 'pillIntakes']
        assert store.get('pillIntakes') == [{'id': 'i1'}]


class TestSQLAlchemyStore:
    """SQL-backed store"""

    @pytest.fixture
    def sql_store(self, tmp_path):
        store = SQLAlchemyStore(f"sqlite:///{tmp_path / 'data' / 'pills.db'}")
        yield store
        store.close()

    def test_round_trip(self, sql_store):
        sql_store.set('pills', [{'id': '1', 'name': 'Aspirin'}])
        assert sql_store.get('pills') == [{'id': '1', 'name': 'Aspirin'}]

    def test_overwrite_replaces_value(self, sql_store):
        sql_store.set('pills', [{'id': '1'}])
        sql_store.set('pills', [])
        assert sql_store.get('pills') == []

    def test_set_many_and_remove(self, sql_store):
        sql_store.set_many({'pills': [{'id': 'p'}], 'pillIntakes': [{'id': 'i'}]})
        assert sql_store.get('pillIntakes') == [{'id': 'i'}]
        sql_store.remove('pills')
        assert sql_store.get('pills') is None
        assert sql_store.get('pillIntakes') == [{'id': 'i'}]

    def test_data_survives_new_store_instance(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'pills.db'}"
        first = SQLAlchemyStore(url)
        first.set('pills', [{'id': '1'}])
        first.close()

        second = SQLAlchemyStore(url)
        assert second.get('pills') == [{'id': '1'}]
        second.close()

    def test_in_memory_database(self):
        store = SQLAlchemyStore('sqlite:///:memory:')
        store.set('pills', [{'id': '1'}])
        assert store.get('pills') == [{'id': '1'}]
        store.close()

    def test_engine_failure_raises_storage_error(self, sql_store):
        with sql_store.engine.begin() as connection:
            connection.exec_driver_sql('DROP TABLE kv_store')
        with pytest.raises(StorageError):
            sql_store.get('pills')
        with pytest.raises(StorageError):
            sql_store.set('pills', [])


class TestCreateStore:

    def test_testing_config_uses_memory_store(self):
        assert isinstance(create_store(TestingConfig), MemoryStore)

    def test_unknown_backend(self):
        class BadConfig(TestingConfig):
            STORE_BACKEND = 'redis'

        with pytest.raises(ValueError):
            create_store(BadConfig)
