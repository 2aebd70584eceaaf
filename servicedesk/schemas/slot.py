from typing import Optional, List
from pydantic import BaseModel, UUID4, field_validator
from datetime import date, datetime

from servicedesk.models.booking import ServiceType
from servicedesk.schemas.booking import Booking


# One row of the availability board
class SlotAvailability(BaseModel):
    slot_id: str
    occupied: int
    capacity: int
    blocked: bool
    remaining: int
    available: bool


# Response for GET /slots/{service_type}
class SlotAvailabilityResponse(BaseModel):
    service_type: ServiceType
    service_date: date
    slots: List[SlotAvailability]
    day_capacity: Optional[int] = None     # onsite laundry only
    day_occupied: Optional[int] = None


# Response for GET /slots/shower/waitlist
class WaitlistEntry(BaseModel):
    position: int
    booking: Booking


# Blocked slot - Create (POST /admin/blocked-slots)
class BlockedSlotCreate(BaseModel):
    service_type: ServiceType
    slot_id: str
    service_date: date

    @field_validator("slot_id")
    @classmethod
    def strip_slot_id(cls, v: str) -> str:
        return v.strip()


# Blocked slot - DB response
class BlockedSlot(BaseModel):
    id: UUID4
    service_type: ServiceType
    slot_id: str
    service_date: date
    blocked_by: Optional[UUID4] = None
    created_at: datetime

    class Config:
        from_attributes = True
