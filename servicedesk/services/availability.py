"""
Read side of the booking engine: slot occupancy, the availability board and
the shower waitlist.

Whether a booking row holds capacity is decided in one place,
``occupies_capacity``. Laundry rows hold their slot even once cancelled while
cancelled showers free theirs; flip the policy there if that ever changes.
"""
from collections import Counter
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from servicedesk.core.errors import SlotBlockedError, SlotFullError, UnknownSlotError
from servicedesk.models.booking import (
    Booking,
    LaundryType,
    ServiceType,
    ShowerStatus,
)
from servicedesk.models.service_settings import ServiceSettings
from servicedesk.schemas.slot import SlotAvailability
from servicedesk.services.blocking import blocked_slot_ids, is_slot_blocked
from servicedesk.utils.timeslots import slot_catalog, slot_capacity


def occupies_capacity(service_type: ServiceType, status: str) -> bool:
    if service_type == ServiceType.LAUNDRY:
        return True
    return status != ShowerStatus.CANCELLED.value


def _slotted_rows(
    db: Session,
    service_type: ServiceType,
    service_date: date,
    exclude_booking_id: Optional[UUID] = None,
):
    query = db.query(Booking.slot_id, Booking.status).filter(
        Booking.service_type == service_type,
        Booking.service_date == service_date,
        Booking.slot_id.isnot(None),
    )
    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.all()


def slot_occupancy(
    db: Session,
    service_type: ServiceType,
    service_date: date,
    exclude_booking_id: Optional[UUID] = None,
) -> Counter:
    """slot_id -> number of bookings holding capacity in that slot."""
    return Counter(
        slot_id
        for slot_id, status in _slotted_rows(db, service_type, service_date, exclude_booking_id)
        if occupies_capacity(service_type, status)
    )


def onsite_laundry_day_count(
    db: Session,
    service_date: date,
    exclude_booking_id: Optional[UUID] = None,
) -> int:
    """Onsite laundry rows holding capacity anywhere on the day."""
    query = db.query(Booking.status).filter(
        Booking.service_type == ServiceType.LAUNDRY,
        Booking.service_date == service_date,
        Booking.laundry_type == LaundryType.ONSITE,
    )
    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)
    return sum(1 for (status,) in query.all() if occupies_capacity(ServiceType.LAUNDRY, status))


def available_slots(
    db: Session,
    service_type: ServiceType,
    service_date: date,
    live_settings: ServiceSettings,
) -> List[SlotAvailability]:
    """
    Availability board for one service and day, in catalog (chronological) order.

    A slot is bookable only when it has a free seat and is not blocked. For
    onsite laundry the day-wide cap also has to have room.
    """
    capacity = slot_capacity(service_type)
    occupancy = slot_occupancy(db, service_type, service_date)
    blocked = blocked_slot_ids(db, service_type, service_date)

    day_has_room = True
    if service_type == ServiceType.LAUNDRY:
        day_has_room = (
            onsite_laundry_day_count(db, service_date) < live_settings.max_onsite_laundry_slots
        )

    board = []
    for slot_id in slot_catalog(service_type, service_date):
        occupied = occupancy.get(slot_id, 0)
        is_blocked = slot_id in blocked
        board.append(
            SlotAvailability(
                slot_id=slot_id,
                occupied=occupied,
                capacity=capacity,
                blocked=is_blocked,
                remaining=max(capacity - occupied, 0),
                available=occupied < capacity and not is_blocked and day_has_room,
            )
        )
    return board


def ensure_slot_bookable(
    db: Session,
    service_type: ServiceType,
    slot_id: Optional[str],
    service_date: date,
    live_settings: ServiceSettings,
    exclude_booking_id: Optional[UUID] = None,
    check_blocked: bool = True,
) -> None:
    """
    Raise unless a new (or moved) booking may take ``slot_id`` on ``service_date``.

    ``exclude_booking_id`` leaves the moving booking's own seat out of the
    count. Must run under the partition lock for the result to hold.
    """
    if not slot_id:
        raise UnknownSlotError("Choose a time slot for this booking.")
    if slot_id not in slot_catalog(service_type, service_date):
        raise UnknownSlotError(
            f"{slot_id} is not a {ServiceType(service_type).value} slot on {service_date}.",
        )
    if check_blocked and is_slot_blocked(db, service_type, slot_id, service_date):
        raise SlotBlockedError(
            f"The {slot_id} slot on {service_date} is blocked. Choose another slot.",
            slot_id=slot_id,
        )

    capacity = slot_capacity(service_type)
    occupied = slot_occupancy(db, service_type, service_date, exclude_booking_id).get(slot_id, 0)
    if occupied >= capacity:
        if service_type == ServiceType.LAUNDRY:
            message = f"The {slot_id} laundry slot is already taken. Choose another slot."
        else:
            message = f"The {slot_id} slot is full. Add the guest to the waitlist instead?"
        raise SlotFullError(message, slot_id=slot_id)

    if service_type == ServiceType.LAUNDRY:
        taken = onsite_laundry_day_count(db, service_date, exclude_booking_id)
        if taken >= live_settings.max_onsite_laundry_slots:
            raise SlotFullError(
                "All on-site laundry slots are taken for today. Offer off-site laundry instead?",
                slot_id=slot_id,
            )


def shower_waitlist(db: Session, service_date: date) -> List[Booking]:
    """Waitlisted showers for a day, first come first served."""
    return (
        db.query(Booking)
        .filter(
            Booking.service_type == ServiceType.SHOWER,
            Booking.service_date == service_date,
            Booking.status == ShowerStatus.WAITLISTED.value,
            Booking.slot_id.is_(None),
        )
        .order_by(Booking.created_at, Booking.id)
        .all()
    )


def waitlist_position(db: Session, booking: Booking) -> Optional[int]:
    """1-based rank on the day's waitlist, or None when not waitlisted."""
    if (
        booking.service_type != ServiceType.SHOWER
        or booking.status != ShowerStatus.WAITLISTED.value
        or booking.slot_id is not None
    ):
        return None
    for position, entry in enumerate(shower_waitlist(db, booking.service_date), start=1):
        if entry.id == booking.id:
            return position
    return None
