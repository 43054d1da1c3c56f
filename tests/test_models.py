"""
Tests for entity model parsing and field validation
"""

import warnings
from datetime import datetime, timezone

import pytest

from pill_tracker.exceptions import ValidationError
from pill_tracker.models import DailySchedule, Pill, PillIntake, PillPack, PillShape, PillType, TimeOfDay
from pill_tracker.models.base import RecordModel
from tests.conftest import make_pack, make_pill


class TestPillValidation:
    """Pill form constraints"""

    def test_defaults_match_new_pill_form(self):
        pill = Pill.validated({'name': 'Aspirin', 'dosage': '100mg'})
        assert pill.type == PillType.TABLET
        assert pill.times_of_day == [TimeOfDay.MORNING]
        assert pill.color == '#2196F3'
        assert pill.shape == PillShape.ROUND
        assert pill.default_pack_size == 30
        assert pill.current_pack_amount == 30

    def test_blank_name_and_dosage_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': '  ', 'dosage': ''})
        assert exc_info.value.errors == {
            'name': 'Pill name is required',
            'dosage': 'Dosage is required',
        }

    def test_missing_name_uses_form_message(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'dosage': '5mg'})
        assert exc_info.value.errors['name'] == 'Pill name is required'

    @pytest.mark.parametrize('times_per_day', [0, 5])
    def test_times_per_day_out_of_range(self, times_per_day):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': 'A', 'dosage': 'B', 'timesPerDay': times_per_day})
        assert exc_info.value.errors['timesPerDay'] == 'Times per day must be between 1 and 4'

    def test_times_of_day_must_not_exceed_times_per_day(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({
                'name': 'A', 'dosage': 'B',
                'timesPerDay': 1,
                'timesOfDay': ['morning', 'night'],
            })
        assert 'timesOfDay' in exc_info.value.errors

    def test_duplicate_times_of_day_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({
                'name': 'A', 'dosage': 'B',
                'timesPerDay': 2,
                'timesOfDay': ['morning', 'morning'],
            })
        assert 'timesOfDay' in exc_info.value.errors

    def test_empty_times_of_day_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': 'A', 'dosage': 'B', 'timesOfDay': []})
        assert exc_info.value.errors['timesOfDay'] == 'At least one time of day is required'

    def test_unknown_enum_value_reported_against_field(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': 'A', 'dosage': 'B', 'shape': 'hexagon'})
        assert 'shape' in exc_info.value.errors

    def test_current_amount_cannot_exceed_pack_size(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': 'A', 'dosage': 'B', 'defaultPackSize': 10, 'currentPackAmount': 11})
        assert exc_info.value.errors['currentPackAmount'] == 'Current pack amount cannot exceed default pack size'

    def test_current_amount_cannot_be_negative(self):
        with pytest.raises(ValidationError) as exc_info:
            Pill.validated({'name': 'A', 'dosage': 'B', 'currentPackAmount': -1})
        assert exc_info.value.errors['currentPackAmount'] == 'Current pack amount cannot be negative'

    def test_snake_case_names_accepted(self):
        pill = Pill.validated({'name': 'A', 'dosage': 'B', 'default_pack_size': 12, 'current_pack_amount': 4})
        assert pill.default_pack_size == 12
        assert pill.to_record()['currentPackAmount'] == 4

    def test_expected_doses_counts_slots(self):
        assert make_pill(timesOfDay=['morning', 'evening']).expected_doses == 2


class TestPillPack:
    """Pack defaults and activity windows"""

    def test_new_pack_starts_full(self):
        pack = PillPack.validated({'pillId': 'p1', 'packSize': 28})
        assert pack.remaining_pills == 28
        assert pack.is_active is True

    def test_pack_size_must_be_positive(self):
        with pytest.raises(ValidationError) as exc_info:
            PillPack.validated({'pillId': 'p1', 'packSize': 0})
        assert exc_info.value.errors['packSize'] == 'Pack size must be greater than 0'

    def test_remaining_cannot_exceed_pack_size(self):
        with pytest.raises(ValidationError) as exc_info:
            PillPack.validated({'pillId': 'p1', 'packSize': 10, 'remainingPills': 11})
        assert 'remainingPills' in exc_info.value.errors

    def test_was_active_on(self):
        pack = make_pack(
            startDate=datetime(2024, 3, 1, 8, 0),
            isActive=False,
            deactivatedAt=datetime(2024, 3, 10, 12, 0),
        )
        assert not pack.was_active_on(datetime(2024, 2, 29).date())
        assert pack.was_active_on(datetime(2024, 3, 1).date())
        assert pack.was_active_on(datetime(2024, 3, 10).date())
        assert not pack.was_active_on(datetime(2024, 3, 11).date())

    def test_is_expired(self):
        pack = make_pack(expiryDate=datetime(2024, 3, 20))
        assert not pack.is_expired(datetime(2024, 3, 20).date())
        assert pack.is_expired(datetime(2024, 3, 21).date())


class TestPillIntake:
    """Intake parsing"""

    def test_aware_timestamp_normalised_to_local(self):
        taken = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        intake = PillIntake.from_record({'pillId': 'p1', 'takenAt': taken.isoformat(), 'timeOfDay': 'morning'})
        assert intake.taken_at.tzinfo is None
        assert intake.taken_at == taken.astimezone().replace(tzinfo=None)

    def test_zulu_suffix_parsed(self):
        intake = PillIntake.from_record({'pillId': 'p1', 'takenAt': '2024-03-15T08:00:00.000Z', 'timeOfDay': 'night'})
        assert intake.time_of_day == TimeOfDay.NIGHT
        assert intake.taken_at.tzinfo is None

    def test_time_of_day_required(self):
        with pytest.raises(ValidationError) as exc_info:
            PillIntake.validated({'pillId': 'p1', 'takenAt': '2024-03-15T08:00:00'})
        assert exc_info.value.errors['timeOfDay'] == 'Time of day is required'


class TestDailySchedule:
    """Schedule record shape"""

    def test_stored_under_date_key(self):
        schedule = DailySchedule.validated({
            'date': '2024-03-15',
            'pills': ['p1'],
            'completed': [{'pillId': 'p1', 'timeOfDay': 'morning'}],
        })
        record = schedule.to_record()
        assert record['date'] == '2024-03-15'
        assert record['completed'] == [{'pillId': 'p1', 'timeOfDay': 'morning'}]
        assert record['missed'] == []

    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            DailySchedule.validated({'date': '15/03/2024'})
        assert 'date' in exc_info.value.errors


class TestRecordModelConfig:
    """Model configuration shared by every record"""

    def test_subclass_defines_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter('error')

            class Note(RecordModel):
                body: str

            note = Note.model_validate({'body': 'x', 'createdAt': '2024-03-15T08:00:00', 'unknown': 1})
        assert note.created_at.hour == 8
        assert not hasattr(note, 'unknown')

    def test_config_settings(self):
        assert RecordModel.model_config['populate_by_name'] is True
        assert RecordModel.model_config['extra'] == 'ignore'
