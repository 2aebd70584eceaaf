from typing import Optional
from pydantic import BaseModel, UUID4
from datetime import date, datetime

from servicedesk.schemas.booking import Booking


# Action history - DB response (the inverse payload stays server-side)
class ActionHistoryEntry(BaseModel):
    id: UUID4
    action_type: str
    description: str
    booking_id: Optional[UUID4] = None
    guest_id: Optional[str] = None
    timestamp: datetime
    service_date: date
    undone_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Response for POST /history/{id}/undo
class UndoResponse(BaseModel):
    entry: ActionHistoryEntry
    booking: Optional[Booking] = None


class ClearHistoryResponse(BaseModel):
    deleted: int
