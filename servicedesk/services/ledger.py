"""
Booking ledger: the only writer of booking rows.

Rows are never deleted. Cancelling is a status, so daily counts and undo keep
working. Each successful call commits the booking change together with its
history entry.
"""
import logging
from datetime import date, datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from servicedesk.core.errors import (
    BagNumberRequiredError,
    DuplicateBookingError,
    InvalidTransitionError,
    NotFoundError,
    OffsiteLaundryDisabledError,
    UnknownSlotError,
)
from servicedesk.core.service_day import now_utc, to_service_day
from servicedesk.models.booking import (
    Booking,
    LaundryType,
    ServiceType,
    ShowerStatus,
)
from servicedesk.services.availability import ensure_slot_bookable
from servicedesk.services.history import (
    OP_CANCEL_BOOKING,
    OP_RESTORE_BAG_NUMBER,
    OP_RESTORE_PLACEMENT,
    record_action,
)
from servicedesk.services.lifecycle import (
    CANCELLED,
    initial_status,
    load_booking,
    stage_cancel,
)
from servicedesk.services.settings_service import get_service_settings
from servicedesk.services.transaction import commit, locked_partition, rollback_on_error

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_no_active_booking(
    db: Session,
    service_type: ServiceType,
    guest_id: str,
    service_date: date,
    exclude_booking_id: Optional[UUID] = None,
) -> None:
    """One live entry (booking or waitlist) per guest, service and day."""
    query = db.query(Booking.id).filter(
        Booking.service_type == service_type,
        Booking.guest_id == guest_id,
        Booking.service_date == service_date,
        Booking.status != CANCELLED,
    )
    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)
    if query.first():
        raise DuplicateBookingError(
            f"Guest already has a {ServiceType(service_type).value} entry on {service_date}.",
            guest_id=guest_id,
        )


def _placement(booking: Booking) -> dict:
    return {
        "slot_id": booking.slot_id,
        "laundry_type": booking.laundry_type.value if booking.laundry_type else None,
        "status": booking.status,
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_booking(db: Session, booking_id: UUID) -> Booking:
    return load_booking(db, booking_id)


def list_bookings(
    db: Session,
    service_type: Optional[ServiceType] = None,
    service_date: Optional[date] = None,
    status: Optional[str] = None,
    guest_id: Optional[str] = None,
) -> List[Booking]:
    query = db.query(Booking)
    if service_type:
        query = query.filter(Booking.service_type == service_type)
    if service_date:
        query = query.filter(Booking.service_date == service_date)
    if status:
        query = query.filter(Booking.status == status)
    if guest_id:
        query = query.filter(Booking.guest_id == guest_id)
    return query.order_by(Booking.service_date, Booking.slot_id, Booking.created_at).all()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def book(
    db: Session,
    service_type: ServiceType,
    guest_id: str,
    service_date: Optional[date] = None,
    slot_id: Optional[str] = None,
    laundry_type: Optional[LaundryType] = None,
    bag_number: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Book a shower or laundry slot.

    Showers and onsite laundry need a catalog slot that is neither blocked
    nor full; offsite laundry is not slotted. A full slot raises
    SlotFullError and nothing is written. Waitlisting is left to the caller.
    """
    now = now or now_utc()
    service_type = ServiceType(service_type)
    service_date = service_date or to_service_day(now)
    if service_type == ServiceType.SHOWER:
        laundry_type = None
    else:
        laundry_type = LaundryType(laundry_type or LaundryType.ONSITE)

    with locked_partition(db, service_type, service_date):
        live_settings = get_service_settings(db)
        if laundry_type == LaundryType.OFFSITE:
            if not live_settings.offsite_laundry_enabled:
                raise OffsiteLaundryDisabledError()
            slot_id = None
        else:
            ensure_slot_bookable(db, service_type, slot_id, service_date, live_settings)
        ensure_no_active_booking(db, service_type, guest_id, service_date)

        booking = Booking(
            service_type=service_type,
            guest_id=guest_id,
            service_date=service_date,
            slot_id=slot_id,
            laundry_type=laundry_type,
            status=initial_status(service_type, laundry_type),
            bag_number=(bag_number or "").strip() or None,
            created_at=now,
            last_updated=now,
        )
        db.add(booking)
        db.flush()

        if service_type == ServiceType.SHOWER:
            description = f"Booked shower at {slot_id} for guest {guest_id}"
        else:
            where = f" at {slot_id}" if slot_id else ""
            description = f"Booked {laundry_type.value} laundry{where} for guest {guest_id}"
        record_action(
            db,
            f"{service_type.value.upper()}_BOOKED",
            description,
            booking,
            OP_CANCEL_BOOKING,
            now=now,
        )
        commit(db)

    logger.info(
        "Booked %s for guest %s on %s (slot=%s, booking=%s)",
        service_type.value, guest_id, service_date, slot_id, booking.id,
    )
    return booking


def waitlist(
    db: Session,
    guest_id: str,
    service_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """Put a guest on the day's shower waitlist. The waitlist has no cap."""
    now = now or now_utc()
    service_date = service_date or to_service_day(now)

    with locked_partition(db, ServiceType.SHOWER, service_date):
        ensure_no_active_booking(db, ServiceType.SHOWER, guest_id, service_date)
        booking = Booking(
            service_type=ServiceType.SHOWER,
            guest_id=guest_id,
            service_date=service_date,
            slot_id=None,
            status=ShowerStatus.WAITLISTED.value,
            created_at=now,
            last_updated=now,
        )
        db.add(booking)
        db.flush()
        record_action(
            db,
            "SHOWER_WAITLISTED",
            f"Added guest {guest_id} to the shower waitlist",
            booking,
            OP_CANCEL_BOOKING,
            now=now,
        )
        commit(db)

    logger.info("Waitlisted guest %s for showers on %s (booking=%s)", guest_id, service_date, booking.id)
    return booking


def cancel(db: Session, booking_id: UUID, now: Optional[datetime] = None) -> Booking:
    """Cancel a booking. Cancelling twice is a no-op."""
    with rollback_on_error(db):
        booking = load_booking(db, booking_id, for_update=True)
        changed = stage_cancel(db, booking, now=now)
        commit(db)
    if changed:
        logger.info("Cancelled booking %s", booking.id)
    return booking


def cancel_many(
    db: Session, booking_ids: Sequence[UUID], now: Optional[datetime] = None
) -> List[Booking]:
    """Cancel several bookings in one transaction: all of them or none."""
    now = now or now_utc()
    with rollback_on_error(db):
        bookings = (
            db.query(Booking)
            .filter(Booking.id.in_(list(booking_ids)))
            .with_for_update()
            .all()
        )
        found = {b.id for b in bookings}
        missing = [str(i) for i in booking_ids if i not in found]
        if missing:
            raise NotFoundError(f"Bookings not found: {', '.join(missing)}")

        changed = [b for b in bookings if stage_cancel(db, b, now=now)]
        commit(db)
    logger.info("Batch cancelled %d of %d booking(s)", len(changed), len(bookings))
    return bookings


def reschedule(
    db: Session,
    booking_id: UUID,
    new_slot_id: Optional[str] = None,
    new_laundry_type: Optional[LaundryType] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Move a booking to another slot on its own service day.

    The target slot is checked for blocking and capacity with the booking's
    own seat left out of the count. A waitlisted shower given a slot becomes
    booked. Laundry switched to offsite loses its slot, and a laundry type
    change resets the status to the new type's first status. On any error the
    booking is left as it was.
    """
    now = now or now_utc()
    with rollback_on_error(db):
        booking = load_booking(db, booking_id)
        service_type = ServiceType(booking.service_type)

    with locked_partition(db, service_type, booking.service_date):
        booking = load_booking(db, booking_id, for_update=True)
        if booking.status == CANCELLED:
            raise InvalidTransitionError("Cancelled bookings cannot be rescheduled.")
        live_settings = get_service_settings(db)
        previous = _placement(booking)

        if service_type == ServiceType.SHOWER:
            if not new_slot_id:
                raise UnknownSlotError("Choose a time slot to move this shower to.")
            if new_slot_id == booking.slot_id:
                commit(db)
                return booking
            ensure_slot_bookable(
                db, service_type, new_slot_id, booking.service_date, live_settings,
                exclude_booking_id=booking.id,
            )
            booking.slot_id = new_slot_id
            if booking.status == ShowerStatus.WAITLISTED.value:
                booking.status = ShowerStatus.BOOKED.value
                description = f"Assigned shower slot {new_slot_id} to waitlisted guest {booking.guest_id}"
            else:
                description = f"Rescheduled shower {previous['slot_id']} to {new_slot_id} for guest {booking.guest_id}"
        else:
            current_type = booking.laundry_type or LaundryType.ONSITE
            target_type = LaundryType(new_laundry_type) if new_laundry_type else current_type
            if target_type == LaundryType.OFFSITE:
                if current_type != LaundryType.OFFSITE and not live_settings.offsite_laundry_enabled:
                    raise OffsiteLaundryDisabledError()
                target_slot = None
            else:
                target_slot = new_slot_id or (booking.slot_id if current_type == LaundryType.ONSITE else None)

            if target_type == current_type and target_slot == booking.slot_id:
                commit(db)
                return booking
            if target_type == LaundryType.ONSITE:
                ensure_slot_bookable(
                    db, service_type, target_slot, booking.service_date, live_settings,
                    exclude_booking_id=booking.id,
                )

            booking.laundry_type = target_type
            booking.slot_id = target_slot
            if target_type != current_type:
                booking.status = initial_status(service_type, target_type)
            where = f" at {target_slot}" if target_slot else ""
            description = f"Moved laundry to {target_type.value}{where} for guest {booking.guest_id}"

        booking.last_updated = now
        record_action(
            db,
            f"{service_type.value.upper()}_RESCHEDULED",
            description,
            booking,
            OP_RESTORE_PLACEMENT,
            previous,
            now=now,
        )
        commit(db)

    logger.info("Rescheduled booking %s to slot %s", booking.id, booking.slot_id)
    return booking


def update_bag_number(
    db: Session, booking_id: UUID, bag_number: str, now: Optional[datetime] = None
) -> Booking:
    """Set a laundry booking's bag number, independent of its status."""
    now = now or now_utc()
    bag_number = (bag_number or "").strip()

    with rollback_on_error(db):
        booking = load_booking(db, booking_id, for_update=True)
        if booking.service_type != ServiceType.LAUNDRY:
            raise InvalidTransitionError("Only laundry bookings carry a bag number.")
        if booking.status == CANCELLED:
            raise InvalidTransitionError("This booking was cancelled and cannot be changed.")
        if not bag_number:
            raise BagNumberRequiredError("Bag number cannot be empty.")
        if bag_number == booking.bag_number:
            commit(db)
            return booking

        previous_bag = booking.bag_number
        booking.bag_number = bag_number
        booking.last_updated = now
        record_action(
            db,
            "LAUNDRY_BAG_NUMBER_UPDATED",
            f"Set laundry bag number to {bag_number} for guest {booking.guest_id}",
            booking,
            OP_RESTORE_BAG_NUMBER,
            {"bag_number": previous_bag},
            now=now,
        )
        commit(db)

    logger.info("Booking %s bag number set to %s", booking.id, bag_number)
    return booking
