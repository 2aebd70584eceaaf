from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from servicedesk.core.errors import (
    AlreadyUndoneError,
    DuplicateBookingError,
    InvalidTransitionError,
    NotFoundError,
    SlotFullError,
)
from servicedesk.models.action_history import ActionHistoryEntry
from servicedesk.models.booking import Booking, ServiceType
from servicedesk.services import ledger
from servicedesk.services.history import clear_history, list_history
from servicedesk.services.lifecycle import change_status
from servicedesk.services.undo import undo
from servicedesk.utils.timeslots import laundry_slots_for

from tests.helpers import MORNING, SERVICE_DAY


def _entry(db, action_type, booking):
    return (
        db.query(ActionHistoryEntry)
        .filter(
            ActionHistoryEntry.action_type == action_type,
            ActionHistoryEntry.booking_id == booking.id,
        )
        .one()
    )


def _live_shower_bookings(db, guest_id):
    return (
        db.query(Booking)
        .filter(
            Booking.service_type == ServiceType.SHOWER,
            Booking.guest_id == guest_id,
            Booking.status != "cancelled",
        )
        .count()
    )


# ---------------------------------------------------------------------------
# History log
# ---------------------------------------------------------------------------


def test_every_mutation_is_logged(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.reschedule(db, booking.id, new_slot_id="09:00", now=MORNING + timedelta(minutes=1))
    ledger.cancel(db, booking.id, now=MORNING + timedelta(minutes=2))

    entries, total = list_history(db, service_date=SERVICE_DAY)
    assert total == 3
    # newest first
    assert [e.action_type for e in entries] == [
        "SHOWER_CANCELLED",
        "SHOWER_RESCHEDULED",
        "SHOWER_BOOKED",
    ]
    assert all(e.guest_id == "G-1" for e in entries)


def test_history_is_filed_under_the_service_day(db):
    late = datetime(2025, 1, 16, 7, 30, tzinfo=timezone.utc)  # 23:30 on Jan 15
    ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=late)
    _, on_day = list_history(db, service_date=SERVICE_DAY)
    _, next_day = list_history(db, service_date=date(2025, 1, 16))
    assert (on_day, next_day) == (1, 0)


def test_history_can_be_filtered_by_guest(db):
    ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.book(db, ServiceType.SHOWER, "G-2", SERVICE_DAY, "08:00", now=MORNING)
    entries, total = list_history(db, guest_id="G-2")
    assert total == 1
    assert entries[0].guest_id == "G-2"


def test_clear_history_keeps_bookings(db):
    ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    assert clear_history(db) == 1
    assert db.query(ActionHistoryEntry).count() == 0
    assert db.query(Booking).count() == 1


# ---------------------------------------------------------------------------
# Undo
# ---------------------------------------------------------------------------


def test_undo_order_does_not_matter(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.cancel(db, booking.id, now=MORNING + timedelta(minutes=1))

    undo(db, _entry(db, "SHOWER_CANCELLED", booking).id, now=MORNING + timedelta(minutes=2))
    db.refresh(booking)
    assert booking.status == "booked"

    undo(db, _entry(db, "SHOWER_BOOKED", booking).id, now=MORNING + timedelta(minutes=3))
    assert _live_shower_bookings(db, "G-1") == 0


def test_undo_twice_is_refused(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    entry = _entry(db, "SHOWER_BOOKED", booking)
    undo(db, entry.id, now=MORNING)
    with pytest.raises(AlreadyUndoneError):
        undo(db, entry.id, now=MORNING)


def test_undo_marks_the_entry_and_adds_none(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    entry, _ = undo(db, _entry(db, "SHOWER_BOOKED", booking).id, now=MORNING)
    assert entry.undone_at is not None
    assert db.query(ActionHistoryEntry).count() == 1


def test_undo_unknown_entry(db):
    with pytest.raises(NotFoundError):
        undo(db, uuid4())


def test_undo_cancel_rechecks_capacity(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.cancel(db, booking.id, now=MORNING)
    ledger.book(db, ServiceType.SHOWER, "G-2", SERVICE_DAY, "08:00", now=MORNING)
    ledger.book(db, ServiceType.SHOWER, "G-3", SERVICE_DAY, "08:00", now=MORNING)

    with pytest.raises(SlotFullError):
        undo(db, _entry(db, "SHOWER_CANCELLED", booking).id, now=MORNING)
    db.refresh(booking)
    assert booking.status == "cancelled"


def test_undo_cancel_refuses_a_second_live_booking(db):
    first = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.cancel(db, first.id, now=MORNING)
    ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "09:00", now=MORNING)
    cancel_entry = _entry(db, "SHOWER_CANCELLED", first)

    with pytest.raises(DuplicateBookingError):
        undo(db, cancel_entry.id, now=MORNING)
    db.refresh(first)
    db.refresh(cancel_entry)
    assert first.status == "cancelled"
    assert cancel_entry.undone_at is None
    assert _live_shower_bookings(db, "G-1") == 1


def test_undo_cancel_of_waitlisted_guest_refuses_a_second_live_booking(db):
    waiting = ledger.waitlist(db, "G-1", SERVICE_DAY, now=MORNING)
    ledger.cancel(db, waiting.id, now=MORNING)
    ledger.waitlist(db, "G-1", SERVICE_DAY, now=MORNING)

    with pytest.raises(DuplicateBookingError):
        undo(db, _entry(db, "SHOWER_CANCELLED", waiting).id, now=MORNING)
    assert _live_shower_bookings(db, "G-1") == 1


def test_undo_status_change_restores_status_and_bag(db):
    slot = laundry_slots_for(SERVICE_DAY)[0]
    booking = ledger.book(db, ServiceType.LAUNDRY, "G-1", SERVICE_DAY, slot, now=MORNING)
    change_status(db, booking.id, "washer", bag_number="B-5", now=MORNING)

    undo(db, _entry(db, "LAUNDRY_STATUS_CHANGED", booking).id, now=MORNING)
    db.refresh(booking)
    assert booking.status == "waiting"
    assert booking.bag_number is None


def test_undo_status_change_on_cancelled_booking_is_refused(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    change_status(db, booking.id, "done", now=MORNING)
    ledger.cancel(db, booking.id, now=MORNING)
    with pytest.raises(InvalidTransitionError):
        undo(db, _entry(db, "SHOWER_STATUS_CHANGED", booking).id, now=MORNING)


def test_undo_reschedule_moves_back(db):
    booking = ledger.book(db, ServiceType.SHOWER, "G-1", SERVICE_DAY, "08:00", now=MORNING)
    ledger.reschedule(db, booking.id, new_slot_id="09:00", now=MORNING)
    undo(db, _entry(db, "SHOWER_RESCHEDULED", booking).id, now=MORNING)
    db.refresh(booking)
    assert booking.slot_id == "08:00"


def test_undo_slot_assignment_returns_guest_to_waitlist(db):
    waiting = ledger.waitlist(db, "G-1", SERVICE_DAY, now=MORNING)
    ledger.reschedule(db, waiting.id, new_slot_id="10:00", now=MORNING)
    undo(db, _entry(db, "SHOWER_RESCHEDULED", waiting).id, now=MORNING)
    db.refresh(waiting)
    assert waiting.status == "waitlisted"
    assert waiting.slot_id is None


def test_undo_bag_number_update(db):
    slot = laundry_slots_for(SERVICE_DAY)[0]
    booking = ledger.book(db, ServiceType.LAUNDRY, "G-1", SERVICE_DAY, slot, bag_number="A", now=MORNING)
    ledger.update_bag_number(db, booking.id, "B", now=MORNING)
    undo(db, _entry(db, "LAUNDRY_BAG_NUMBER_UPDATED", booking).id, now=MORNING)
    db.refresh(booking)
    assert booking.bag_number == "A"
