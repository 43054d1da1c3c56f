"""
Tracker service: the operations screens call.

Reads snapshots from the repository, asks the inventory and adherence
functions for a decision or view, and writes accepted changes back.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pill_tracker.models import (
    DEFAULT_PACK_SIZE, DEFAULT_PILL_COLOR, DailySchedule, HistoryRow, IntakeDecision, InventoryStats,
    Period, Pill, PillIntake, PillPack, SummaryStats, TimeOfDay, TodayPill,
)
from pill_tracker.services import adherence_service, inventory_service
from pill_tracker.services.repository import Collection, EntityRepository
from pill_tracker.utils.helpers import to_local_date, to_local_datetime

logger = logging.getLogger(__name__)


class TrackerService:
    """Service for taking pills and reading adherence views"""

    def __init__(self, repository: EntityRepository, pack_mode: bool = False,
                 default_pack_size: int = DEFAULT_PACK_SIZE,
                 default_color: str = DEFAULT_PILL_COLOR):
        self.repository = repository
        self.pack_mode = pack_mode
        self.default_pack_size = default_pack_size
        self.default_color = default_color

    def add_pill(self, data: Dict[str, Any]) -> Pill:
        """Create a pill, filling unset pack size, amount and colour from the configured defaults"""
        data = Pill.normalize_keys(dict(data))
        data.setdefault('defaultPackSize', self.default_pack_size)
        data.setdefault('currentPackAmount', data['defaultPackSize'])
        data.setdefault('color', self.default_color)
        return Pill.from_record(self.repository.create(Collection.PILLS, data))

    def mark_pill_taken(self, pill_id: str,
                        time_of_day: Optional[Union[TimeOfDay, str]] = None,
                        now: Optional[datetime] = None,
                        notes: str = '') -> IntakeDecision:
        """
        Take one dose of a pill.

        Args:
            pill_id: ID of the pill
            time_of_day: Slot being taken (default: the slot for ``now``, which
                must be one of the pill's scheduled slots)
            now: When the dose was taken (default: current time)
            notes: Optional notes stored with the intake

        Returns:
            The engine's decision; when accepted, ``intake`` is the stored row
        """
        now = to_local_datetime(now or datetime.now())
        pill = self.repository.get_pill(pill_id)
        time_of_day = time_of_day or adherence_service.current_time_of_day(now)
        inventory_service.check_scheduled_slot(pill, time_of_day)

        todays_intakes = adherence_service.intakes_for_pill_on(
            self.repository.list_intakes(pill_id), pill_id, now.date()
        )
        active_pack = self.repository.get_active_pack(pill_id) if self.pack_mode else None

        decision = inventory_service.record_intake(
            pill, todays_intakes, time_of_day,
            active_pack=active_pack,
            pack_mode=self.pack_mode,
            taken_at=now,
            notes=notes,
        )
        if not decision.accepted:
            return decision

        saved = self.repository.apply_intake(decision.intake, decision.pill, decision.pack)
        return decision.model_copy(update={'intake': saved})

    def reset_pack(self, pill_id: str, now: Optional[datetime] = None) -> Pill:
        """
        Refill the pill to its default pack size.

        In pack mode a fresh pack of ``defaultPackSize`` is opened instead and
        the pill counter follows it.
        """
        pill = self.repository.get_pill(pill_id)
        if self.pack_mode:
            self.start_new_pack(pill_id, pill.default_pack_size, now=now)
            return self.repository.get_pill(pill_id)

        pill = inventory_service.reset_pack(pill)
        logger.info(f"🔄 Reset pack of pill {pill_id} to {pill.current_pack_amount}")
        return self.repository.update_pill_current_pack_amount(pill_id, pill.current_pack_amount)

    def start_new_pack(self, pill_id: str, pack_size: int,
                       expiry_date: Optional[datetime] = None,
                       now: Optional[datetime] = None) -> PillPack:
        """
        Open a fresh pack for a pill.

        The prior active pack is deactivated first so at most one pack is
        active at a time.
        """
        now = now or datetime.now()
        pill = self.repository.get_pill(pill_id)
        pack = inventory_service.new_pack(pill_id, pack_size, expiry_date=expiry_date, start_date=now)

        previous = self.repository.get_active_pack(pill_id)
        if previous is not None:
            retired = inventory_service.deactivate_pack(previous, at=now)
            self.repository.update(Collection.PILL_PACKS, previous.id, {
                'isActive': retired.is_active,
                'deactivatedAt': retired.deactivated_at,
            })
            logger.info(f"📦 Deactivated pack {previous.id} of pill {pill_id}")

        created = PillPack.from_record(self.repository.create(Collection.PILL_PACKS, pack))

        if self.pack_mode:
            self.repository.update_pill_current_pack_amount(
                pill_id, min(created.remaining_pills, pill.default_pack_size)
            )
        logger.info(f"📦 Started pack {created.id} of {pack_size} for pill {pill_id}")
        return created

    def delete_pill(self, pill_id: str) -> None:
        self.repository.delete(Collection.PILLS, pill_id)

    def today_overview(self, now: Optional[datetime] = None) -> List[TodayPill]:
        """Every pill with the slots already taken today and its stock band"""
        day = to_local_date(now or datetime.now())
        intakes = self.repository.list_intakes()
        packs = self.repository.list_packs()

        overview = []
        for pill in self.repository.list_pills():
            taken = adherence_service.intakes_for_pill_on(intakes, pill.id, day)
            active_pack = inventory_service.find_active_pack(pill.id, packs)
            remaining = inventory_service.remaining_count(pill, active_pack, self.pack_mode)
            overview.append(TodayPill(
                pill=pill,
                taken_times=[intake.time_of_day for intake in taken],
                remaining=remaining,
                stock_status=inventory_service.compute_stock_status(max(remaining, 0)),
            ))
        return overview

    def low_stock_count(self) -> int:
        return inventory_service.count_low_stock(
            self.repository.list_pills(), self.repository.list_packs(), self.pack_mode
        )

    def history(self, period: Union[Period, str],
                reference_date: Optional[Union[date, datetime]] = None,
                today: Optional[date] = None) -> List[HistoryRow]:
        return adherence_service.compute_history(
            self.repository.list_pills(),
            self.repository.list_intakes(),
            self.repository.list_packs(),
            period,
            reference_date,
            today=today,
            pack_mode=self.pack_mode,
        )

    def period_intakes(self, period: Union[Period, str],
                       reference_date: Optional[Union[date, datetime]] = None) -> List[PillIntake]:
        """Intakes within the period, newest first"""
        intakes = adherence_service.filter_by_period(self.repository.list_intakes(), period, reference_date)
        return adherence_service.sort_intakes_newest_first(intakes)

    def summary(self, period: Union[Period, str],
                reference_date: Optional[Union[date, datetime]] = None) -> SummaryStats:
        today = to_local_date(reference_date) if reference_date is not None else None
        return adherence_service.compute_summary_stats(self.period_intakes(period, reference_date), today=today)

    def inventory_stats(self) -> InventoryStats:
        return inventory_service.compute_inventory_stats(
            self.repository.list_pills(),
            self.repository.list_packs(),
            self.repository.list_intakes(),
        )

    def refresh_daily_schedule(self, day: Optional[date] = None) -> DailySchedule:
        """Rebuild and store the cached schedule for a day"""
        day = day or date.today()
        schedule = adherence_service.build_daily_schedule(
            self.repository.list_pills(), self.repository.list_intakes(), day
        )
        return self.repository.save_daily_schedule(schedule)

    def reconcile_packs(self) -> List[PillPack]:
        """Recompute every pack's remaining count from intake history; returns the packs changed"""
        intakes = self.repository.list_intakes()
        changed = []
        for pack in self.repository.list_packs():
            repaired = inventory_service.reconcile_pack(pack, intakes)
            if repaired.remaining_pills != pack.remaining_pills:
                self.repository.update(Collection.PILL_PACKS, pack.id, {'remainingPills': repaired.remaining_pills})
                changed.append(repaired)
        return changed
