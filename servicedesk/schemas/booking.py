from typing import Optional, List
from pydantic import BaseModel, Field, UUID4, field_validator
from datetime import date, datetime

from servicedesk.models.booking import ServiceType, LaundryType


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# Booking - Create (POST /bookings)
class BookingCreate(BaseModel):
    service_type: ServiceType
    guest_id: str = Field(min_length=1, max_length=64)
    service_date: Optional[date] = None     # defaults to today's service day
    slot_id: Optional[str] = None           # required unless laundry_type is offsite
    laundry_type: Optional[LaundryType] = None
    bag_number: Optional[str] = Field(None, max_length=32)

    @field_validator("slot_id", "bag_number", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)


# Waitlist - Create (POST /bookings/waitlist)
class WaitlistCreate(BaseModel):
    guest_id: str = Field(min_length=1, max_length=64)
    service_date: Optional[date] = None


# Booking - Reschedule (PATCH /bookings/{id}/reschedule)
class BookingReschedule(BaseModel):
    slot_id: Optional[str] = None
    laundry_type: Optional[LaundryType] = None

    @field_validator("slot_id", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)


# Booking - Status change (PATCH /bookings/{id}/status)
class BookingStatusUpdate(BaseModel):
    status: str
    bag_number: Optional[str] = Field(None, max_length=32)

    @field_validator("bag_number", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)


# Booking - Bag number (PATCH /bookings/{id}/bag-number)
class BagNumberUpdate(BaseModel):
    bag_number: str = Field(min_length=1, max_length=32)


# Booking - Batch cancel (POST /bookings/cancel-batch)
class BookingBatchCancel(BaseModel):
    booking_ids: List[UUID4] = Field(min_length=1, max_length=100)


# Booking - Full response
class Booking(BaseModel):
    id: UUID4
    service_type: ServiceType
    guest_id: str
    service_date: date
    slot_id: Optional[str] = None
    laundry_type: Optional[LaundryType] = None
    status: str
    bag_number: Optional[str] = None
    created_at: datetime
    last_updated: datetime
    waitlist_position: Optional[int] = None   # derived on read, never stored

    class Config:
        from_attributes = True
