from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.api.deps import get_current_user, get_current_admin_user
from servicedesk.core.service_day import today
from servicedesk.models.user import StaffUser
from servicedesk.schemas.booking import Booking as BookingSchema
from servicedesk.schemas.common import PaginatedResponse
from servicedesk.schemas.history import (
    ActionHistoryEntry as ActionHistoryEntrySchema,
    UndoResponse,
    ClearHistoryResponse,
)
from servicedesk.services.availability import waitlist_position
from servicedesk.services.history import list_history, clear_history
from servicedesk.services.undo import undo

router = APIRouter(prefix="/history", tags=["History"])


@router.get("/", response_model=PaginatedResponse[ActionHistoryEntrySchema])
def get_history(
    today_only: bool = Query(True),
    service_date: Optional[date] = Query(None, alias="date"),
    guest_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    """Newest first. `date` wins over `today_only`."""
    if service_date is None and today_only:
        service_date = today()
    entries, total = list_history(
        db, service_date=service_date, guest_id=guest_id, page=page, limit=limit
    )
    return PaginatedResponse(
        data=[ActionHistoryEntrySchema.model_validate(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.post("/{entry_id}/undo", response_model=UndoResponse)
def undo_action(
    entry_id: UUID,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    entry, booking = undo(db, entry_id)
    booking_out = BookingSchema.model_validate(booking)
    booking_out.waitlist_position = waitlist_position(db, booking)
    return UndoResponse(
        entry=ActionHistoryEntrySchema.model_validate(entry),
        booking=booking_out,
    )


@router.delete("/", response_model=ClearHistoryResponse)
def delete_history(
    service_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_admin_user),
):
    """Clear the log (or one day of it). Bookings are not touched."""
    return ClearHistoryResponse(deleted=clear_history(db, service_date=service_date))
