"""
Inventory rules: whether a dose may be taken and what it does to stock.

Everything here is a pure function over snapshots handed in by the caller;
nothing reads or writes the store.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from pill_tracker.exceptions import ValidationError
from pill_tracker.utils.helpers import to_local_datetime
from pill_tracker.models import (
    IntakeDecision, InventoryStats, Pill, PillIntake, PillPack, RejectionReason,
    StockStatus, TimeOfDay,
)

logger = logging.getLogger(__name__)

# Stock bands are fixed policy, not configuration
LOW_STOCK_THRESHOLD = 5
MEDIUM_STOCK_THRESHOLD = 10


def compute_stock_status(remaining: int) -> StockStatus:
    """Classify a remaining-dose count into a stock band"""
    if remaining < 0:
        raise ValueError(f"Remaining count cannot be negative: {remaining}")
    if remaining == 0:
        return StockStatus.EMPTY
    if remaining <= LOW_STOCK_THRESHOLD:
        return StockStatus.LOW
    if remaining <= MEDIUM_STOCK_THRESHOLD:
        return StockStatus.MEDIUM
    return StockStatus.GOOD


def is_running_low(remaining: int) -> bool:
    """Check if a pill is running low (low or empty)"""
    return remaining <= LOW_STOCK_THRESHOLD


def find_active_pack(pill_id: str, packs: Iterable[PillPack]) -> Optional[PillPack]:
    """The pack currently being drawn down for a pill, if any"""
    for pack in packs:
        if pack.pill_id == pill_id and pack.is_active:
            return pack
    return None


def remaining_count(pill: Pill, active_pack: Optional[PillPack] = None, pack_mode: bool = False) -> int:
    """Live remaining doses: the pack's counter in pack mode, the pill's otherwise"""
    if pack_mode:
        return active_pack.remaining_pills if active_pack is not None else 0
    return pill.current_pack_amount


def count_low_stock(pills: Iterable[Pill], packs: Iterable[PillPack] = (), pack_mode: bool = False) -> int:
    """Number of pills whose remaining count is low or empty"""
    packs = list(packs)
    count = 0
    for pill in pills:
        active_pack = find_active_pack(pill.id, packs) if pack_mode else None
        if is_running_low(remaining_count(pill, active_pack, pack_mode)):
            count += 1
    return count


def check_scheduled_slot(pill: Pill, time_of_day: Union[TimeOfDay, str]):
    """Raise ValidationError unless ``time_of_day`` is one of the pill's scheduled slots"""
    time_of_day = TimeOfDay(time_of_day)
    if time_of_day not in pill.times_of_day:
        raise ValidationError({'timeOfDay': f'{pill.name} is not scheduled for {time_of_day.label.lower()}'})


def record_intake(pill: Pill,
                  existing_intakes_today: Iterable[PillIntake],
                  time_of_day: Union[TimeOfDay, str],
                  active_pack: Optional[PillPack] = None,
                  pack_mode: bool = False,
                  taken_at: Optional[datetime] = None,
                  notes: str = '') -> IntakeDecision:
    """
    Decide whether ``pill`` may be taken for ``time_of_day``.

    Args:
        pill: Current pill snapshot
        existing_intakes_today: Intakes already recorded; only those for this
            pill on the day of ``taken_at`` are considered
        time_of_day: Schedule slot being taken
        active_pack: The pill's active pack (pack mode only)
        pack_mode: Draw down ``active_pack.remaining_pills`` instead of the
            pill's own counter
        taken_at: When the dose was taken (default: now)
        notes: Free-form notes stored on the intake

    Returns:
        An accepted decision carrying the decremented pill (and pack) plus
        the unsaved intake, or a rejection with its reason. Rejections are
        expected outcomes and are never raised.

    Raises:
        ValidationError: ``time_of_day`` is not one of the pill's scheduled slots
    """
    time_of_day = TimeOfDay(time_of_day)
    taken_at = to_local_datetime(taken_at or datetime.now())

    check_scheduled_slot(pill, time_of_day)

    if pack_mode:
        if active_pack is None or not active_pack.is_active or active_pack.pill_id != pill.id:
            logger.info(f"🚫 No active pack for pill {pill.id}")
            return IntakeDecision.reject(RejectionReason.NO_ACTIVE_PACK)

    if remaining_count(pill, active_pack, pack_mode) <= 0:
        logger.info(f"🚫 Pill {pill.id} is out of stock")
        return IntakeDecision.reject(RejectionReason.OUT_OF_STOCK)

    day = taken_at.date()
    for intake in existing_intakes_today:
        if intake.pill_id == pill.id and intake.time_of_day == time_of_day and intake.taken_on == day:
            logger.info(f"🚫 Pill {pill.id} already taken for {time_of_day.value} on {day}")
            return IntakeDecision.reject(RejectionReason.ALREADY_TAKEN)

    new_pack = None
    if pack_mode:
        new_pack = active_pack.model_copy(update={'remaining_pills': active_pack.remaining_pills - 1})
        # The pill counter mirrors the authoritative pack counter
        new_amount = min(new_pack.remaining_pills, pill.default_pack_size)
    else:
        new_amount = pill.current_pack_amount - 1

    new_pill = pill.model_copy(update={'current_pack_amount': new_amount})
    intake = PillIntake(
        pill_id=pill.id,
        pack_id=new_pack.id if new_pack is not None else None,
        taken_at=taken_at,
        time_of_day=time_of_day,
        notes=notes,
    )
    return IntakeDecision(accepted=True, pill=new_pill, pack=new_pack, intake=intake)


def reset_pack(pill: Pill) -> Pill:
    """Refill the pill's counter to a fresh pack; the only backward stock move"""
    return pill.model_copy(update={'current_pack_amount': pill.default_pack_size})


def can_activate_pack(pill_id: str, packs: Iterable[PillPack], exclude_id: Optional[str] = None) -> bool:
    """True if no other pack for the pill is active"""
    for pack in packs:
        if pack.pill_id == pill_id and pack.is_active and pack.id != exclude_id:
            return False
    return True


def check_pack_activation(pack: PillPack, packs: Iterable[PillPack]):
    """Raise ValidationError if ``pack`` would be a second active pack for its pill"""
    if pack.is_active and not can_activate_pack(pack.pill_id, packs, exclude_id=pack.id):
        raise ValidationError({'isActive': 'This pill already has an active pack'})


def new_pack(pill_id: str, pack_size: int,
             expiry_date: Optional[datetime] = None,
             start_date: Optional[datetime] = None) -> PillPack:
    """Build a full, active pack (unsaved)"""
    return PillPack.validated({
        'pillId': pill_id,
        'packSize': pack_size,
        'remainingPills': pack_size,
        'startDate': start_date or datetime.now(),
        'expiryDate': expiry_date,
        'isActive': True,
    })


def deactivate_pack(pack: PillPack, at: Optional[datetime] = None) -> PillPack:
    """Mark a pack inactive; an already inactive pack is returned unchanged"""
    if not pack.is_active:
        return pack
    return pack.model_copy(update={'is_active': False, 'deactivated_at': at or datetime.now()})


def reconcile_pack(pack: PillPack, intakes: Iterable[PillIntake]) -> PillPack:
    """Recompute a pack's remaining count from the intakes drawn from it"""
    used = sum(1 for intake in intakes if intake.pack_id == pack.id)
    remaining = max(0, pack.pack_size - used)
    if remaining != pack.remaining_pills:
        logger.warning(f"⚠️  Pack {pack.id} counter {pack.remaining_pills} reconciled to {remaining}")
    return pack.model_copy(update={'remaining_pills': remaining})


def expired_packs(packs: Iterable[PillPack], on: Optional[date] = None) -> List[PillPack]:
    """Active packs past their expiry date"""
    return [pack for pack in packs if pack.is_active and pack.is_expired(on)]


def compute_inventory_stats(pills: Iterable[Pill],
                            packs: Iterable[PillPack],
                            intakes: Iterable[PillIntake]) -> InventoryStats:
    packs = list(packs)
    return InventoryStats(
        total_pills=len(list(pills)),
        total_packs=len(packs),
        total_intakes=len(list(intakes)),
        active_packs=sum(1 for pack in packs if pack.is_active),
    )
