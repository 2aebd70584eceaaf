import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, func, Uuid, Enum as SAEnum
from servicedesk.db.session import Base

class StaffRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"
    VOLUNTEER = "volunteer"

class StaffUser(Base):
    __tablename__ = "staff_users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(SAEnum(StaffRole, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False, default=StaffRole.VOLUNTEER)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
