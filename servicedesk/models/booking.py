import uuid
import enum
from sqlalchemy import Column, String, DateTime, Date, Index, Uuid, Enum as SAEnum
from servicedesk.db.session import Base


class ServiceType(str, enum.Enum):
    SHOWER = "shower"
    LAUNDRY = "laundry"


class LaundryType(str, enum.Enum):
    ONSITE = "onsite"
    OFFSITE = "offsite"


class ShowerStatus(str, enum.Enum):
    WAITLISTED = "waitlisted"
    BOOKED = "booked"
    DONE = "done"
    CANCELLED = "cancelled"


class LaundryStatus(str, enum.Enum):
    # onsite
    WAITING = "waiting"
    WASHER = "washer"
    DRYER = "dryer"
    DONE = "done"
    PICKED_UP = "picked_up"
    # offsite
    PENDING = "pending"
    TRANSPORTED = "transported"
    RETURNED = "returned"
    OFFSITE_PICKED_UP = "offsite_picked_up"
    # either
    CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_type = Column(SAEnum(ServiceType, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False)
    guest_id = Column(String(64), nullable=False, index=True) # owned by the guest directory
    service_date = Column(Date, nullable=False) # the day the booking is filed under
    slot_id = Column(String(20), nullable=True) # NULL: waitlisted shower or offsite laundry
    laundry_type = Column(SAEnum(LaundryType, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=True)
    status = Column(String(20), nullable=False)
    bag_number = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_bookings_service_date_slot", "service_type", "service_date", "slot_id"),
        Index("ix_bookings_service_date_status", "service_type", "service_date", "status"),
    )


class SlotPartition(Base):
    """One row per (service, day); locked FOR UPDATE around capacity writes."""
    __tablename__ = "slot_partitions"

    service_type = Column(String(20), primary_key=True)
    service_date = Column(Date, primary_key=True)
