from typing import Optional
from pydantic import BaseModel, EmailStr, UUID4
from datetime import datetime

from servicedesk.models.user import StaffRole


# Shared properties
class StaffUserBase(BaseModel):
    email: EmailStr
    full_name: str
    role: StaffRole = StaffRole.VOLUNTEER


# Properties to receive via API on creation (POST /auth/register)
class StaffUserCreate(StaffUserBase):
    password: str
    admin_secret: str


# Properties returned via API
class StaffUser(StaffUserBase):
    id: UUID4
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
    user: StaffUser


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
