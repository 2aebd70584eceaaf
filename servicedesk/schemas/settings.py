from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


# Live service settings (GET /admin/settings)
class ServiceSettings(BaseModel):
    max_onsite_laundry_slots: int
    offsite_laundry_enabled: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# PATCH /admin/settings
class ServiceSettingsUpdate(BaseModel):
    max_onsite_laundry_slots: Optional[int] = Field(None, ge=1)
    offsite_laundry_enabled: Optional[bool] = None
