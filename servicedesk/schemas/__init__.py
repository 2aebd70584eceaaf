from servicedesk.schemas.common import PaginatedResponse, ErrorResponse
from servicedesk.schemas.user import StaffUser, StaffUserCreate, Token, TokenPayload
from servicedesk.schemas.booking import (
    Booking, BookingCreate, WaitlistCreate, BookingReschedule,
    BookingStatusUpdate, BagNumberUpdate, BookingBatchCancel,
)
from servicedesk.schemas.slot import (
    SlotAvailability, SlotAvailabilityResponse, WaitlistEntry,
    BlockedSlot, BlockedSlotCreate,
)
from servicedesk.schemas.history import ActionHistoryEntry, UndoResponse, ClearHistoryResponse
from servicedesk.schemas.settings import ServiceSettings, ServiceSettingsUpdate
