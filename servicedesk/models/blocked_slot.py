import uuid
from sqlalchemy import Column, String, DateTime, Date, Uuid, ForeignKey, UniqueConstraint, Enum as SAEnum
from servicedesk.db.session import Base
from servicedesk.models.booking import ServiceType

class BlockedSlot(Base):
    __tablename__ = "blocked_slots"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_type = Column(SAEnum(ServiceType, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False)
    slot_id = Column(String(20), nullable=False)
    service_date = Column(Date, nullable=False, index=True)
    blocked_by = Column(Uuid(as_uuid=True), ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("service_type", "slot_id", "service_date", name="uq_blocked_slot"),
    )
