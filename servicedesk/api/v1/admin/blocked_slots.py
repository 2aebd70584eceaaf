from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.api.deps import get_current_user, get_current_staff_user
from servicedesk.models.booking import ServiceType
from servicedesk.models.user import StaffUser
from servicedesk.schemas.slot import BlockedSlot as BlockedSlotSchema, BlockedSlotCreate
from servicedesk.services.blocking import block_slot, list_blocked_slots, unblock_slot

router = APIRouter(prefix="/admin/blocked-slots", tags=["Admin - Blocked Slots"])


@router.get("/", response_model=List[BlockedSlotSchema])
def get_blocked_slots(
    service_type: Optional[ServiceType] = Query(None),
    service_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    return list_blocked_slots(db, service_type=service_type, service_date=service_date)


@router.post("/", response_model=BlockedSlotSchema, status_code=status.HTTP_201_CREATED)
def create_blocked_slot(
    data: BlockedSlotCreate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_staff_user),
):
    """Withdraw a slot from new bookings. Existing bookings in it are kept."""
    return block_slot(
        db,
        data.service_type,
        data.slot_id,
        data.service_date,
        blocked_by=current_user.id,
    )


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_slot(
    service_type: ServiceType = Query(...),
    slot_id: str = Query(...),
    service_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_staff_user),
):
    if not unblock_slot(db, service_type, slot_id.strip(), service_date):
        raise HTTPException(status_code=404, detail="Slot is not blocked")
