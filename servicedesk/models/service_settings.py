from sqlalchemy import Column, Integer, Boolean, DateTime
from servicedesk.db.session import Base

class ServiceSettings(Base):
    __tablename__ = "service_settings"

    id = Column(Integer, primary_key=True) # single row, id = 1
    max_onsite_laundry_slots = Column(Integer, nullable=False)
    offsite_laundry_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
