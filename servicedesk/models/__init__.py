from servicedesk.models.user import StaffUser, StaffRole
from servicedesk.models.booking import (
    Booking, SlotPartition, ServiceType, LaundryType, ShowerStatus, LaundryStatus,
)
from servicedesk.models.blocked_slot import BlockedSlot
from servicedesk.models.action_history import ActionHistoryEntry
from servicedesk.models.service_settings import ServiceSettings
