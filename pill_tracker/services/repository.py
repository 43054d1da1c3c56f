"""
Entity repository: CRUD over the four collections kept in the key-value store
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pill_tracker.database.store import KeyValueStore
from pill_tracker.exceptions import NotFoundError, StorageError, ValidationError
from pill_tracker.models import DailySchedule, Pill, PillIntake, PillPack
from pill_tracker.models.base import RecordModel
from pill_tracker.services.inventory_service import check_pack_activation, check_scheduled_slot
from pill_tracker.utils.helpers import generate_id, now_iso

logger = logging.getLogger(__name__)


class Collection(str, Enum):
    PILLS = 'pills'
    PILL_INTAKES = 'pillIntakes'
    DAILY_SCHEDULES = 'dailySchedules'
    PILL_PACKS = 'pillPacks'


COLLECTION_MODELS = {
    Collection.PILLS: Pill,
    Collection.PILL_INTAKES: PillIntake,
    Collection.DAILY_SCHEDULES: DailySchedule,
    Collection.PILL_PACKS: PillPack,
}

# Fields a caller can never set through create/update
PROTECTED_FIELDS = ('id', 'createdAt', 'updatedAt')

Record = Dict[str, Any]


class EntityRepository:
    """
    CRUD, cascade delete and bulk export/import over the store.

    Every write replaces the whole stored collection.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # Generic collection access

    def list(self, collection: Union[Collection, str]) -> List[Record]:
        """All records of a collection, empty if nothing is stored"""
        collection = Collection(collection)
        records = self.store.get(collection.value)
        if records is None:
            return []
        if not isinstance(records, list):
            raise StorageError('get', collection.value, 'stored collection is not a list')
        return records

    def get(self, collection: Union[Collection, str], record_id: str) -> Record:
        collection = Collection(collection)
        for record in self.list(collection):
            if record.get('id') == record_id:
                return record
        raise NotFoundError(collection.value, record_id)

    def create(self, collection: Union[Collection, str], data: Union[Record, RecordModel]) -> Record:
        """Assign an id and timestamps, validate, and append a new record"""
        collection = Collection(collection)
        model_class = COLLECTION_MODELS[collection]
        records = self.list(collection)

        data = self._as_dict(model_class, data)
        timestamp = now_iso()
        record = {key: value for key, value in data.items() if key not in PROTECTED_FIELDS}
        record.update({'id': generate_id(), 'createdAt': timestamp, 'updatedAt': timestamp})

        record = self._validate(collection, record, records)
        records.append(record)
        self._save({collection: records})

        logger.info(f"✅ Created {collection.value} record {record['id']}")
        return record

    def update(self, collection: Union[Collection, str], record_id: str,
               patch: Union[Record, RecordModel]) -> Record:
        """Merge ``patch`` over an existing record and refresh updatedAt"""
        collection = Collection(collection)
        if collection is Collection.PILL_INTAKES:
            raise ValidationError({'id': 'Intakes cannot be changed once recorded'})

        model_class = COLLECTION_MODELS[collection]
        records = self.list(collection)
        index = self._index_of(collection, records, record_id)

        patch = {key: value for key, value in self._as_dict(model_class, patch).items()
                 if key not in PROTECTED_FIELDS}
        merged = {**records[index], **patch, 'updatedAt': now_iso()}

        if collection is Collection.PILLS:
            self._clamp_pack_amount(merged, patch)

        records[index] = self._validate(collection, merged, records)
        self._save({collection: records})

        logger.info(f"📝 Updated {collection.value} record {record_id}")
        return records[index]

    def delete(self, collection: Union[Collection, str], record_id: str) -> None:
        """
        Remove a record.

        Deleting a pill also removes its intakes and packs and drops it from
        cached daily schedules; all affected collections are written together.
        """
        collection = Collection(collection)
        records = self.list(collection)
        self._index_of(collection, records, record_id)

        changes = {collection: [record for record in records if record.get('id') != record_id]}

        if collection is Collection.PILLS:
            for dependent in (Collection.PILL_INTAKES, Collection.PILL_PACKS):
                rows = self.list(dependent)
                kept = [row for row in rows if row.get('pillId') != record_id]
                if len(kept) != len(rows):
                    changes[dependent] = kept
                    logger.info(f"🗑️  Removing {len(rows) - len(kept)} {dependent.value} of pill {record_id}")

            schedules = self.list(Collection.DAILY_SCHEDULES)
            pruned = [self._without_pill(schedule, record_id) for schedule in schedules]
            if pruned != schedules:
                changes[Collection.DAILY_SCHEDULES] = pruned

        self._save(changes)
        logger.info(f"🗑️  Deleted {collection.value} record {record_id}")

    def export_all(self) -> Dict[str, Any]:
        """Snapshot of every collection plus the export timestamp"""
        snapshot = {collection.value: self.list(collection) for collection in Collection}
        snapshot['exportDate'] = datetime.now().astimezone().isoformat()
        return snapshot

    def import_all(self, snapshot: Dict[str, Any]) -> None:
        """Replace every collection present in ``snapshot``; absent ones stay untouched"""
        if not isinstance(snapshot, dict):
            raise ValidationError({'snapshot': 'Import data must be a JSON object'})

        changes = {}
        errors = {}
        for collection in Collection:
            if collection.value not in snapshot or snapshot[collection.value] is None:
                continue
            records = snapshot[collection.value]
            if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
                errors[collection.value] = 'Expected a list of records'
                continue
            changes[collection] = records

        if errors:
            raise ValidationError(errors)

        self._save(changes)
        logger.info(f"📥 Imported {', '.join(c.value for c in changes) or 'nothing'}")

    def clear_all(self) -> None:
        """Remove all four collections, attempting every key"""
        failures = []
        for collection in Collection:
            try:
                self.store.remove(collection.value)
            except StorageError as e:
                logger.error(f"❌ Failed to clear {collection.value}: {e}")
                failures.append(e)
        if failures:
            raise failures[0]
        logger.info("🧹 Cleared all data")

    # Typed helpers

    def list_pills(self) -> List[Pill]:
        return [Pill.from_record(record) for record in self.list(Collection.PILLS)]

    def get_pill(self, pill_id: str) -> Pill:
        return Pill.from_record(self.get(Collection.PILLS, pill_id))

    def list_intakes(self, pill_id: Optional[str] = None) -> List[PillIntake]:
        intakes = [PillIntake.from_record(record) for record in self.list(Collection.PILL_INTAKES)]
        if pill_id is not None:
            intakes = [intake for intake in intakes if intake.pill_id == pill_id]
        return intakes

    def list_packs(self, pill_id: Optional[str] = None) -> List[PillPack]:
        packs = [PillPack.from_record(record) for record in self.list(Collection.PILL_PACKS)]
        if pill_id is not None:
            packs = [pack for pack in packs if pack.pill_id == pill_id]
        return packs

    def get_active_pack(self, pill_id: str) -> Optional[PillPack]:
        for pack in self.list_packs(pill_id):
            if pack.is_active:
                return pack
        return None

    def update_pill_current_pack_amount(self, pill_id: str, amount: int) -> Pill:
        """Set a pill's live counter; negative or oversized amounts are rejected"""
        return Pill.from_record(self.update(Collection.PILLS, pill_id, {'currentPackAmount': amount}))

    def list_daily_schedules(self) -> List[DailySchedule]:
        return [DailySchedule.from_record(record) for record in self.list(Collection.DAILY_SCHEDULES)]

    def get_daily_schedule(self, day: Union[date, str]) -> Optional[DailySchedule]:
        key = day.isoformat() if isinstance(day, date) else day
        for record in self.list(Collection.DAILY_SCHEDULES):
            if record.get('date') == key:
                return DailySchedule.from_record(record)
        return None

    def save_daily_schedule(self, schedule: Union[DailySchedule, Record]) -> DailySchedule:
        """Insert or replace the cached schedule for its date"""
        data = self._as_dict(DailySchedule, schedule)
        records = self.list(Collection.DAILY_SCHEDULES)
        for record in records:
            if record.get('date') == data.get('date'):
                return DailySchedule.from_record(self.update(Collection.DAILY_SCHEDULES, record['id'], data))
        return DailySchedule.from_record(self.create(Collection.DAILY_SCHEDULES, data))

    def apply_intake(self, intake: PillIntake, pill: Pill, pack: Optional[PillPack] = None) -> PillIntake:
        """
        Persist an accepted intake together with the new counters.

        The intake, the pill and (in pack mode) the pack are written in a
        single store call so backends with transactions apply all or nothing.
        """
        intakes = self.list(Collection.PILL_INTAKES)
        pills = self.list(Collection.PILLS)
        timestamp = now_iso()

        record = {key: value for key, value in intake.to_record().items() if key not in PROTECTED_FIELDS}
        record.update({'id': generate_id(), 'createdAt': timestamp, 'updatedAt': timestamp})
        record = self._validate(Collection.PILL_INTAKES, record, intakes)
        intakes.append(record)

        pill_index = self._index_of(Collection.PILLS, pills, pill.id)
        pill_record = {**pills[pill_index], 'currentPackAmount': pill.current_pack_amount, 'updatedAt': timestamp}
        pills[pill_index] = self._validate(Collection.PILLS, pill_record, pills)

        changes = {Collection.PILL_INTAKES: intakes, Collection.PILLS: pills}

        if pack is not None:
            packs = self.list(Collection.PILL_PACKS)
            pack_index = self._index_of(Collection.PILL_PACKS, packs, pack.id)
            pack_record = {**packs[pack_index], 'remainingPills': pack.remaining_pills, 'updatedAt': timestamp}
            packs[pack_index] = self._validate(Collection.PILL_PACKS, pack_record, packs)
            changes[Collection.PILL_PACKS] = packs

        self._save(changes)
        logger.info(f"💊 Recorded {intake.time_of_day.value} intake of pill {pill.id}")
        return PillIntake.from_record(record)

    # Internals

    @staticmethod
    def _as_dict(model_class, data: Union[Record, RecordModel]) -> Record:
        if isinstance(data, RecordModel):
            return data.to_record()
        return model_class.normalize_keys(dict(data))

    @staticmethod
    def _index_of(collection: Collection, records: List[Record], record_id: str) -> int:
        for index, record in enumerate(records):
            if record.get('id') == record_id:
                return index
        raise NotFoundError(collection.value, record_id)

    @staticmethod
    def _without_pill(schedule: Record, pill_id: str) -> Record:
        """A schedule record with every mention of ``pill_id`` removed"""
        return {
            **schedule,
            'pills': [pid for pid in schedule.get('pills', []) if pid != pill_id],
            'completed': [slot for slot in schedule.get('completed', []) if slot.get('pillId') != pill_id],
            'missed': [slot for slot in schedule.get('missed', []) if slot.get('pillId') != pill_id],
        }

    @staticmethod
    def _clamp_pack_amount(merged: Record, patch: Record):
        # Shrinking the pack size without a new amount pulls the amount down with it
        new_size = patch.get('defaultPackSize')
        if 'currentPackAmount' in patch or not isinstance(new_size, int) or new_size < 1:
            return
        current = merged.get('currentPackAmount')
        if isinstance(current, int) and current > new_size:
            merged['currentPackAmount'] = new_size

    def _validate(self, collection: Collection, record: Record, records: List[Record]) -> Record:
        """Check a candidate record against its model and collection rules"""
        model = COLLECTION_MODELS[collection].validated(record)

        if collection is Collection.PILL_INTAKES:
            pills = self.list(Collection.PILLS)
            pill = Pill.from_record(pills[self._index_of(Collection.PILLS, pills, model.pill_id)])
            check_scheduled_slot(pill, model.time_of_day)
            for other in records:
                if other.get('id') == model.id:
                    continue
                existing = PillIntake.from_record(other)
                if (existing.pill_id == model.pill_id
                        and existing.time_of_day == model.time_of_day
                        and existing.taken_on == model.taken_on):
                    raise ValidationError({'timeOfDay': 'This pill has already been taken for this time period'})

        elif collection is Collection.PILL_PACKS:
            self._index_of(Collection.PILLS, self.list(Collection.PILLS), model.pill_id)
            check_pack_activation(model, [PillPack.from_record(other) for other in records])

        return model.to_record()

    def _save(self, changes: Dict[Collection, List[Record]]):
        if changes:
            self.store.set_many({collection.value: records for collection, records in changes.items()})
