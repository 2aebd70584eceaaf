from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.api.deps import get_current_user
from servicedesk.core.service_day import today
from servicedesk.models.booking import ServiceType
from servicedesk.models.user import StaffUser
from servicedesk.schemas.booking import Booking as BookingSchema
from servicedesk.schemas.slot import SlotAvailabilityResponse, WaitlistEntry
from servicedesk.services.availability import (
    available_slots,
    onsite_laundry_day_count,
    shower_waitlist,
)
from servicedesk.services.settings_service import get_service_settings

router = APIRouter(prefix="/slots", tags=["Slots"])


# ---------------------------------------------------------------------------
# GET /slots/shower/waitlist: the day's waitlist, in order
# ---------------------------------------------------------------------------


@router.get("/shower/waitlist", response_model=List[WaitlistEntry])
def get_shower_waitlist(
    service_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    rows = shower_waitlist(db, service_date or today())
    return [
        WaitlistEntry(
            position=position,
            booking=BookingSchema.model_validate(row).model_copy(update={"waitlist_position": position}),
        )
        for position, row in enumerate(rows, start=1)
    ]


# ---------------------------------------------------------------------------
# GET /slots/{service_type}: availability board
# ---------------------------------------------------------------------------


@router.get("/{service_type}", response_model=SlotAvailabilityResponse)
def get_available_slots(
    service_type: ServiceType,
    service_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    """
    Every catalog slot for the day with occupancy, capacity and blocked flag.
    Defaults to today's service day.
    """
    service_date = service_date or today()
    live_settings = get_service_settings(db)
    response = SlotAvailabilityResponse(
        service_type=service_type,
        service_date=service_date,
        slots=available_slots(db, service_type, service_date, live_settings),
    )
    if service_type == ServiceType.LAUNDRY:
        response.day_capacity = live_settings.max_onsite_laundry_slots
        response.day_occupied = onsite_laundry_day_count(db, service_date)
    return response
