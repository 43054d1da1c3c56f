"""
Adherence views: date windows, per-day cells and period statistics
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from pill_tracker.models import (
    AdherenceStatus, DailyCell, DailySchedule, DoseSlot, HistoryRow, Period, Pill,
    PillIntake, PillPack, SummaryStats, TimeOfDay,
)
from pill_tracker.services.inventory_service import find_active_pack
from pill_tracker.utils.helpers import to_local_date, to_local_datetime


def current_time_of_day(now: Optional[datetime] = None) -> TimeOfDay:
    """Schedule slot for a wall-clock time"""
    hour = (now or datetime.now()).hour
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def compute_date_range(period: Union[Period, str],
                       reference_date: Optional[Union[date, datetime]] = None) -> List[date]:
    """
    Trailing calendar days for a period, oldest first.

    week/month/year cover 7/30/365 days ending at ``reference_date``
    inclusive.
    """
    period = Period(period)
    end = to_local_date(reference_date or datetime.now())
    return [end - timedelta(days=offset) for offset in range(period.days - 1, -1, -1)]


def period_cutoff(period: Union[Period, str],
                  reference_date: Optional[Union[date, datetime]] = None) -> datetime:
    """Earliest timestamp kept by filter_by_period"""
    period = Period(period)
    reference = reference_date or datetime.now()
    if not isinstance(reference, datetime):
        reference = datetime.combine(reference, datetime.min.time())
    return to_local_datetime(reference) - timedelta(days=period.days)


def filter_by_period(intakes: Iterable[PillIntake],
                     period: Union[Period, str],
                     reference_date: Optional[Union[date, datetime]] = None) -> List[PillIntake]:
    """Intakes taken at or after the period cutoff"""
    cutoff = period_cutoff(period, reference_date)
    return [intake for intake in intakes if intake.taken_at >= cutoff]


def sort_intakes_newest_first(intakes: Iterable[PillIntake]) -> List[PillIntake]:
    return sorted(intakes, key=lambda intake: intake.taken_at, reverse=True)


def intakes_for_pill_on(intakes: Iterable[PillIntake], pill_id: str, day: date) -> List[PillIntake]:
    return [intake for intake in intakes if intake.pill_id == pill_id and intake.taken_on == day]


def find_pack_active_on(pill_id: str, packs: Iterable[PillPack], day: date) -> Optional[PillPack]:
    """The pack that was being drawn down for a pill on ``day``"""
    candidates = [pack for pack in packs if pack.pill_id == pill_id and pack.was_active_on(day)]
    if not candidates:
        return None
    # A pack replaced on ``day`` and its successor both qualify; the newer one wins
    return max(candidates, key=lambda pack: pack.start_date)


def compute_remaining_at_date(pill: Pill,
                              day: date,
                              intakes: Iterable[PillIntake],
                              packs: Iterable[PillPack],
                              today: Optional[date] = None,
                              pack_mode: bool = False) -> int:
    """
    Remaining doses as of ``day``.

    Today (or later) reads the live counter. Past days are reconstructed from
    the pack that was active then: its size minus the intakes drawn from it
    between its start and the end of ``day``, floored at 0. Without such a
    pack the result is 0.
    """
    today = today or date.today()
    packs = list(packs)

    if day >= today:
        if pack_mode:
            active_pack = find_active_pack(pill.id, packs)
            return active_pack.remaining_pills if active_pack is not None else 0
        return pill.current_pack_amount

    pack = find_pack_active_on(pill.id, packs, day)
    if pack is None:
        return 0

    used = sum(
        1 for intake in intakes
        if intake.pill_id == pill.id
        and intake.pack_id == pack.id
        and intake.taken_at >= pack.start_date
        and intake.taken_on <= day
    )
    return max(0, pack.pack_size - used)


def adherence_status(taken_count: int, expected_count: int) -> AdherenceStatus:
    if taken_count == 0:
        return AdherenceStatus.NONE
    if taken_count == expected_count:
        return AdherenceStatus.FULL
    return AdherenceStatus.PARTIAL


def compute_daily_cell(pill: Pill,
                       day: date,
                       intakes: Iterable[PillIntake],
                       packs: Iterable[PillPack],
                       today: Optional[date] = None,
                       pack_mode: bool = False) -> DailyCell:
    """
    Adherence cell for one pill on one day.

    ``intakes`` may hold the pill's whole history: the day's doses are picked
    out for the taken count, and earlier ones feed the remaining-count
    reconstruction for past days.
    """
    intakes = list(intakes)
    taken_count = len(intakes_for_pill_on(intakes, pill.id, day))
    expected_count = pill.expected_doses

    return DailyCell(
        pill_id=pill.id,
        day=day,
        taken_count=taken_count,
        expected_count=expected_count,
        remaining_at_date=compute_remaining_at_date(pill, day, intakes, packs, today, pack_mode),
        status=adherence_status(taken_count, expected_count),
    )


def compute_history(pills: Iterable[Pill],
                    intakes: Iterable[PillIntake],
                    packs: Iterable[PillPack],
                    period: Union[Period, str],
                    reference_date: Optional[Union[date, datetime]] = None,
                    today: Optional[date] = None,
                    pack_mode: bool = False) -> List[HistoryRow]:
    """Day-by-pill grid of adherence cells for the period, oldest day first"""
    pills = list(pills)
    intakes = list(intakes)
    packs = list(packs)

    rows = []
    for day in compute_date_range(period, reference_date):
        cells = [
            compute_daily_cell(
                pill, day,
                [intake for intake in intakes if intake.pill_id == pill.id],
                [pack for pack in packs if pack.pill_id == pill.id],
                today=today,
                pack_mode=pack_mode,
            )
            for pill in pills
        ]
        rows.append(HistoryRow(day=day, cells=cells))
    return rows


def calculate_adherence_percentage(taken: int, total: int) -> float:
    """Calculate adherence percentage"""
    if total == 0:
        return 0.0
    return round((taken / total) * 100, 2)


def compute_adherence_rate(rows: Iterable[HistoryRow]) -> float:
    """Share of expected doses taken across a history grid, in percent"""
    taken = 0
    expected = 0
    for row in rows:
        for cell in row.cells:
            taken += min(cell.taken_count, cell.expected_count)
            expected += cell.expected_count
    return calculate_adherence_percentage(taken, expected)


def compute_summary_stats(intakes: Iterable[PillIntake], today: Optional[date] = None) -> SummaryStats:
    """Totals for the history screen header"""
    intakes = list(intakes)
    today = today or date.today()
    return SummaryStats(
        total_intakes=len(intakes),
        unique_pill_count=len({intake.pill_id for intake in intakes}),
        today_intake_count=sum(1 for intake in intakes if intake.taken_on == today),
    )


def build_daily_schedule(pills: Iterable[Pill],
                         intakes: Iterable[PillIntake],
                         day: date,
                         today: Optional[date] = None) -> DailySchedule:
    """
    Derive the planned vs completed snapshot for a day.

    Untaken slots only count as missed once the day is over.
    """
    today = today or date.today()
    intakes = list(intakes)
    pills = list(pills)

    completed = []
    missed = []
    for pill in pills:
        taken_slots = {intake.time_of_day for intake in intakes_for_pill_on(intakes, pill.id, day)}
        for time_of_day in pill.times_of_day:
            slot = DoseSlot(pill_id=pill.id, time_of_day=time_of_day)
            if time_of_day in taken_slots:
                completed.append(slot)
            elif day < today:
                missed.append(slot)

    return DailySchedule(
        schedule_date=day.isoformat(),
        pills=[pill.id for pill in pills],
        completed=completed,
        missed=missed,
    )
