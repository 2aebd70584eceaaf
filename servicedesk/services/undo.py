"""
Undo for action history entries.

Each entry stores an inverse command ``{"op": ..., "params": {...}}``. Undo
runs that command against the booking as it is now, without replaying
history, so entries can be undone in any order. An entry is undone at most
once, and undoing does not add a new entry.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from servicedesk.core.errors import (
    AlreadyUndoneError,
    InvalidTransitionError,
    NotFoundError,
)
from servicedesk.core.service_day import now_utc
from servicedesk.models.action_history import ActionHistoryEntry
from servicedesk.models.booking import Booking, LaundryType, ServiceType
from servicedesk.services.availability import ensure_slot_bookable, occupies_capacity
from servicedesk.services.history import (
    OP_CANCEL_BOOKING,
    OP_RESTORE_BAG_NUMBER,
    OP_RESTORE_PLACEMENT,
    OP_RESTORE_STATUS,
    get_entry,
)
from servicedesk.services.ledger import ensure_no_active_booking
from servicedesk.services.lifecycle import (
    CANCELLED,
    initial_status,
    load_booking,
    statuses_for,
)
from servicedesk.services.settings_service import get_service_settings
from servicedesk.services.transaction import commit, locked_partition, rollback_on_error

logger = logging.getLogger(__name__)


def _ensure_room_to_restore(
    db: Session, booking: Booking, slot_id: Optional[str], status: str
) -> None:
    """Putting a booking back must not overbook the slot it returns to."""
    if slot_id is None or not occupies_capacity(booking.service_type, status):
        return
    if booking.slot_id == slot_id and occupies_capacity(booking.service_type, booking.status):
        return  # already holding that seat
    ensure_slot_bookable(
        db,
        booking.service_type,
        slot_id,
        booking.service_date,
        get_service_settings(db),
        exclude_booking_id=booking.id,
        check_blocked=False,
    )


def _ensure_guest_has_no_other_entry(db: Session, booking: Booking, status: str) -> None:
    """Reviving a cancelled booking must not give the guest a second live entry that day."""
    if booking.status != CANCELLED or status == CANCELLED:
        return
    ensure_no_active_booking(
        db,
        booking.service_type,
        booking.guest_id,
        booking.service_date,
        exclude_booking_id=booking.id,
    )


def _undo_cancel_booking(db: Session, booking: Booking, params: dict) -> None:
    booking.status = CANCELLED


def _undo_restore_status(db: Session, booking: Booking, params: dict) -> None:
    from_status = params.get("from_status")
    if booking.status == CANCELLED and from_status != CANCELLED:
        raise InvalidTransitionError(
            "This booking was cancelled afterwards. Undo the cancellation first.",
        )
    target = params["status"]
    if target not in statuses_for(booking):
        raise InvalidTransitionError(
            f"This booking has since changed type; '{target}' no longer applies.",
        )
    _ensure_room_to_restore(db, booking, booking.slot_id, target)
    _ensure_guest_has_no_other_entry(db, booking, target)
    booking.status = target
    if "bag_number" in params:
        booking.bag_number = params["bag_number"]


def _undo_restore_placement(db: Session, booking: Booking, params: dict) -> None:
    slot_id = params.get("slot_id")
    laundry_type = params.get("laundry_type")
    # A cancelled booking stays cancelled; only its placement moves back.
    status = booking.status if booking.status == CANCELLED else params["status"]
    _ensure_room_to_restore(db, booking, slot_id, status)
    _ensure_guest_has_no_other_entry(db, booking, status)
    booking.slot_id = slot_id
    booking.laundry_type = LaundryType(laundry_type) if laundry_type else None
    booking.status = status


def _undo_restore_bag_number(db: Session, booking: Booking, params: dict) -> None:
    previous = params.get("bag_number")
    if (
        not previous
        and booking.service_type == ServiceType.LAUNDRY
        and booking.status not in (CANCELLED, initial_status(booking.service_type, booking.laundry_type))
    ):
        raise InvalidTransitionError(
            "This laundry is already in progress and needs a bag number.",
        )
    booking.bag_number = previous


INVERSE_HANDLERS: Dict[str, Callable[[Session, Booking, dict], None]] = {
    OP_CANCEL_BOOKING: _undo_cancel_booking,
    OP_RESTORE_STATUS: _undo_restore_status,
    OP_RESTORE_PLACEMENT: _undo_restore_placement,
    OP_RESTORE_BAG_NUMBER: _undo_restore_bag_number,
}


def undo(
    db: Session, entry_id: UUID, now: Optional[datetime] = None
) -> Tuple[ActionHistoryEntry, Booking]:
    now = now or now_utc()

    with rollback_on_error(db):
        entry = get_entry(db, entry_id)
        if not entry:
            raise NotFoundError("History entry not found.", entry_id=str(entry_id))
        if entry.undone_at is not None:
            raise AlreadyUndoneError()
        op = entry.inverse.get("op")
        handler = INVERSE_HANDLERS.get(op)
        if handler is None:
            raise InvalidTransitionError(f"Entry {entry_id} cannot be undone.")
        params = entry.inverse.get("params") or {}
        booking = load_booking(db, UUID(params["booking_id"]))
        service_type, service_date = booking.service_type, booking.service_date

    with locked_partition(db, service_type, service_date):
        entry = get_entry(db, entry_id)
        if entry.undone_at is not None:
            raise AlreadyUndoneError()
        booking = load_booking(db, UUID(params["booking_id"]), for_update=True)
        handler(db, booking, params)
        booking.last_updated = now
        entry.undone_at = now
        commit(db)

    logger.info("Undid %s (%s) on booking %s", entry.action_type, op, booking.id)
    return entry, booking
