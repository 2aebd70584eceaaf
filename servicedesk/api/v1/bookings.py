from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.api.deps import get_current_user
from servicedesk.models.booking import Booking, ServiceType
from servicedesk.models.user import StaffUser
from servicedesk.schemas.booking import (
    Booking as BookingSchema,
    BookingCreate,
    WaitlistCreate,
    BookingReschedule,
    BookingStatusUpdate,
    BagNumberUpdate,
    BookingBatchCancel,
)
from servicedesk.services import ledger
from servicedesk.services.availability import waitlist_position
from servicedesk.services.lifecycle import change_status

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_booking(db: Session, booking: Booking) -> BookingSchema:
    """Booking schema with its live waitlist position filled in."""
    out = BookingSchema.model_validate(booking)
    out.waitlist_position = waitlist_position(db, booking)
    return out


# ---------------------------------------------------------------------------
# POST /bookings: book a slot
# ---------------------------------------------------------------------------


@router.post("/", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    """
    Book a shower or laundry slot for a guest.

    - Showers and onsite laundry need a `slot_id` from the day's catalog.
    - Offsite laundry takes no slot.
    - A full slot answers 409 `slot_full`; offer the waitlist instead.
    """
    booking = ledger.book(
        db,
        service_type=data.service_type,
        guest_id=data.guest_id,
        service_date=data.service_date,
        slot_id=data.slot_id,
        laundry_type=data.laundry_type,
        bag_number=data.bag_number,
    )
    return _serialize_booking(db, booking)


@router.post("/waitlist", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def add_to_waitlist(
    data: WaitlistCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    booking = ledger.waitlist(db, guest_id=data.guest_id, service_date=data.service_date)
    return _serialize_booking(db, booking)


# ---------------------------------------------------------------------------
# POST /bookings/cancel-batch: cancel several at once
# ---------------------------------------------------------------------------


@router.post("/cancel-batch", response_model=List[BookingSchema])
def cancel_bookings(
    data: BookingBatchCancel,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    """All listed bookings are cancelled, or none are (404 if any id is unknown)."""
    bookings = ledger.cancel_many(db, data.booking_ids)
    return [BookingSchema.model_validate(b) for b in bookings]


# ---------------------------------------------------------------------------
# GET /bookings: a day's bookings
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[BookingSchema])
def list_bookings(
    service_type: Optional[ServiceType] = Query(None),
    service_date: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[str] = Query(None, alias="status"),
    guest_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    bookings = ledger.list_bookings(
        db,
        service_type=service_type,
        service_date=service_date,
        status=status_filter,
        guest_id=guest_id,
    )
    return [_serialize_booking(db, b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    return _serialize_booking(db, ledger.get_booking(db, booking_id))


# ---------------------------------------------------------------------------
# PATCH /bookings/{id}/...: changes to one booking
# ---------------------------------------------------------------------------


@router.patch("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    return _serialize_booking(db, ledger.cancel(db, booking_id))


@router.patch("/{booking_id}/reschedule", response_model=BookingSchema)
def reschedule_booking(
    booking_id: UUID,
    data: BookingReschedule,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    """Move to another slot on the same day. Assigning a slot to a waitlisted shower books it."""
    booking = ledger.reschedule(
        db,
        booking_id,
        new_slot_id=data.slot_id,
        new_laundry_type=data.laundry_type,
    )
    return _serialize_booking(db, booking)


@router.patch("/{booking_id}/status", response_model=BookingSchema)
def update_booking_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    booking = change_status(db, booking_id, data.status, bag_number=data.bag_number)
    return _serialize_booking(db, booking)


@router.patch("/{booking_id}/bag-number", response_model=BookingSchema)
def update_bag_number(
    booking_id: UUID,
    data: BagNumberUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    booking = ledger.update_bag_number(db, booking_id, data.bag_number)
    return _serialize_booking(db, booking)
