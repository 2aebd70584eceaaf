"""
Action history: one entry per successful mutation, holding what is needed to
reverse it. Entries are added inside the caller's transaction so a booking
change and its history entry commit (or fail) together.
"""
from datetime import date, datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from servicedesk.core.service_day import now_utc, to_service_day
from servicedesk.models.action_history import ActionHistoryEntry
from servicedesk.models.booking import Booking
from servicedesk.services.transaction import commit

# Inverse operations understood by services.undo
OP_CANCEL_BOOKING = "cancel_booking"
OP_RESTORE_STATUS = "restore_status"
OP_RESTORE_PLACEMENT = "restore_placement"
OP_RESTORE_BAG_NUMBER = "restore_bag_number"


def record_action(
    db: Session,
    action_type: str,
    description: str,
    booking: Booking,
    inverse_op: str,
    inverse_params: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> ActionHistoryEntry:
    """Stage a history entry for ``booking``; the caller commits."""
    timestamp = now or now_utc()
    entry = ActionHistoryEntry(
        action_type=action_type,
        description=description,
        booking_id=booking.id,
        guest_id=booking.guest_id,
        timestamp=timestamp,
        service_date=to_service_day(timestamp),
        inverse={
            "op": inverse_op,
            "params": {"booking_id": str(booking.id), **(inverse_params or {})},
        },
    )
    db.add(entry)
    return entry


def list_history(
    db: Session,
    service_date: Optional[date] = None,
    guest_id: Optional[str] = None,
    include_undone: bool = True,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[ActionHistoryEntry], int]:
    """Newest first. Pass ``service_date`` to get one day's entries."""
    query = db.query(ActionHistoryEntry)
    if service_date:
        query = query.filter(ActionHistoryEntry.service_date == service_date)
    if guest_id:
        query = query.filter(ActionHistoryEntry.guest_id == guest_id)
    if not include_undone:
        query = query.filter(ActionHistoryEntry.undone_at.is_(None))

    total = query.count()
    entries = (
        query.order_by(ActionHistoryEntry.timestamp.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return entries, total


def get_entry(db: Session, entry_id: UUID) -> Optional[ActionHistoryEntry]:
    return db.query(ActionHistoryEntry).filter(ActionHistoryEntry.id == entry_id).first()


def clear_history(db: Session, service_date: Optional[date] = None) -> int:
    """Delete history entries (all of them, or one service day's). Bookings are untouched."""
    query = db.query(ActionHistoryEntry)
    if service_date:
        query = query.filter(ActionHistoryEntry.service_date == service_date)
    deleted = query.delete(synchronize_session="fetch")
    commit(db)
    return deleted
