"""
Status lifecycle for shower and laundry bookings.

Laundry moves any-to-any inside its own status set (staff fix mis-clicks by
clicking the right state), showers follow a small table, and ``cancelled``
is terminal for both. Every laundry move other than a cancel needs a bag
number; when the caller supplies one with the move, both are written in the
same update.
"""
import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from servicedesk.core.errors import (
    BagNumberRequiredError,
    InvalidTransitionError,
    NotFoundError,
)
from servicedesk.core.service_day import now_utc
from servicedesk.models.booking import (
    Booking,
    LaundryStatus,
    LaundryType,
    ServiceType,
    ShowerStatus,
)
from servicedesk.services.history import OP_RESTORE_STATUS, record_action
from servicedesk.services.transaction import commit, rollback_on_error

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"

SHOWER_STATUSES: Tuple[str, ...] = tuple(s.value for s in ShowerStatus)

ONSITE_LAUNDRY_STATUSES: Tuple[str, ...] = (
    LaundryStatus.WAITING.value,
    LaundryStatus.WASHER.value,
    LaundryStatus.DRYER.value,
    LaundryStatus.DONE.value,
    LaundryStatus.PICKED_UP.value,
)

OFFSITE_LAUNDRY_STATUSES: Tuple[str, ...] = (
    LaundryStatus.PENDING.value,
    LaundryStatus.TRANSPORTED.value,
    LaundryStatus.RETURNED.value,
    LaundryStatus.OFFSITE_PICKED_UP.value,
)

# waitlisted -> booked happens through slot assignment (reschedule), not here.
SHOWER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    ShowerStatus.WAITLISTED.value: frozenset({ShowerStatus.DONE.value, CANCELLED}),
    ShowerStatus.BOOKED.value: frozenset({ShowerStatus.DONE.value, CANCELLED}),
    ShowerStatus.DONE.value: frozenset({ShowerStatus.BOOKED.value, CANCELLED}),
    CANCELLED: frozenset(),
}


def initial_status(service_type: ServiceType, laundry_type: Optional[LaundryType] = None) -> str:
    if service_type == ServiceType.SHOWER:
        return ShowerStatus.BOOKED.value
    if laundry_type == LaundryType.OFFSITE:
        return LaundryStatus.PENDING.value
    return LaundryStatus.WAITING.value


def statuses_for(booking: Booking) -> Tuple[str, ...]:
    if booking.service_type == ServiceType.SHOWER:
        return SHOWER_STATUSES
    if booking.laundry_type == LaundryType.OFFSITE:
        return OFFSITE_LAUNDRY_STATUSES + (CANCELLED,)
    return ONSITE_LAUNDRY_STATUSES + (CANCELLED,)


def check_transition(booking: Booking, target: str) -> None:
    """Raise InvalidTransitionError unless ``booking`` may move to ``target``."""
    if target not in statuses_for(booking):
        raise InvalidTransitionError(
            f"'{target}' is not a valid status for this {_label(booking)} booking.",
        )
    if booking.status == CANCELLED:
        raise InvalidTransitionError("This booking was cancelled and cannot be changed.")

    if booking.service_type == ServiceType.SHOWER:
        allowed = SHOWER_TRANSITIONS.get(booking.status, frozenset())
        if target not in allowed:
            if target == ShowerStatus.BOOKED.value and booking.slot_id is None:
                raise InvalidTransitionError(
                    "Assign a time slot to move this guest off the waitlist.",
                )
            raise InvalidTransitionError(
                f"A {booking.status} shower cannot be marked {target}.",
            )


def load_booking(db: Session, booking_id: UUID, for_update: bool = False) -> Booking:
    query = db.query(Booking).filter(Booking.id == booking_id)
    if for_update:
        # refresh anything already in the identity map from the locked row
        query = query.with_for_update().populate_existing()
    booking = query.first()
    if not booking:
        raise NotFoundError("Booking not found.", booking_id=str(booking_id))
    return booking


def _label(booking: Booking) -> str:
    if booking.service_type == ServiceType.SHOWER:
        return "shower"
    laundry_type = booking.laundry_type.value if booking.laundry_type else LaundryType.ONSITE.value
    return f"{laundry_type} laundry"


def _action_prefix(booking: Booking) -> str:
    return ServiceType(booking.service_type).value.upper()


def stage_cancel(db: Session, booking: Booking, now: Optional[datetime] = None) -> bool:
    """Mark ``booking`` cancelled and stage its history entry. False if it already was."""
    if booking.status == CANCELLED:
        return False
    now = now or now_utc()
    previous_status = booking.status
    booking.status = CANCELLED
    booking.last_updated = now
    where = f" at {booking.slot_id}" if booking.slot_id else ""
    record_action(
        db,
        f"{_action_prefix(booking)}_CANCELLED",
        f"Cancelled {_label(booking)}{where} for guest {booking.guest_id}",
        booking,
        OP_RESTORE_STATUS,
        {"status": previous_status, "from_status": CANCELLED},
        now=now,
    )
    return True


def change_status(
    db: Session,
    booking_id: UUID,
    new_status: str,
    bag_number: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Move a booking to ``new_status``.

    For laundry, a booking without a bag number only moves when
    ``bag_number`` is supplied; the number and the status then land in one
    commit. Without either, BagNumberRequiredError is raised and nothing
    changes.
    """
    now = now or now_utc()
    supplied_bag = bag_number.strip() if bag_number else None

    with rollback_on_error(db):
        booking = load_booking(db, booking_id, for_update=True)
        target = str(new_status).strip().lower()

        if target == booking.status:
            commit(db)
            return booking
        check_transition(booking, target)

        if target == CANCELLED:
            stage_cancel(db, booking, now=now)
            commit(db)
            logger.info("Booking %s cancelled via status change", booking.id)
            return booking

        previous_status = booking.status
        previous_bag = booking.bag_number
        set_bag = False
        if booking.service_type == ServiceType.LAUNDRY:
            if not booking.bag_number and not supplied_bag:
                raise BagNumberRequiredError(
                    "Enter a bag number before moving this laundry forward.",
                    booking_id=str(booking.id),
                )
            if supplied_bag and supplied_bag != booking.bag_number:
                booking.bag_number = supplied_bag
                set_bag = True

        booking.status = target
        booking.last_updated = now

        description = f"Marked {_label(booking)} {target} for guest {booking.guest_id}"
        if set_bag:
            description += f" (bag {supplied_bag})"
        params = {"status": previous_status, "from_status": target}
        if set_bag:
            params["bag_number"] = previous_bag
        record_action(
            db,
            f"{_action_prefix(booking)}_STATUS_CHANGED",
            description,
            booking,
            OP_RESTORE_STATUS,
            params,
            now=now,
        )
        commit(db)

    logger.info("Booking %s status %s -> %s", booking.id, previous_status, target)
    return booking
