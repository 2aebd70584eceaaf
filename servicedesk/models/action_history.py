import uuid
from sqlalchemy import Column, String, DateTime, Date, Uuid, JSON, ForeignKey, Text
from sqlalchemy.orm import relationship
from servicedesk.db.session import Base

class ActionHistoryEntry(Base):
    __tablename__ = "action_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    action_type = Column(String(40), nullable=False) # SHOWER_BOOKED, LAUNDRY_STATUS_CHANGED, ...
    description = Column(Text, nullable=False)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=True, index=True)
    guest_id = Column(String(64), nullable=True, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    service_date = Column(Date, nullable=False, index=True) # service day of `timestamp`
    inverse = Column(JSON, nullable=False) # {"op": ..., "params": {...}}
    undone_at = Column(DateTime(timezone=True), nullable=True)

    booking = relationship("Booking")
