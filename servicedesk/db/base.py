from servicedesk.db.session import Base
from servicedesk.models.user import StaffUser
from servicedesk.models.booking import Booking, SlotPartition
from servicedesk.models.blocked_slot import BlockedSlot
from servicedesk.models.action_history import ActionHistoryEntry
from servicedesk.models.service_settings import ServiceSettings
