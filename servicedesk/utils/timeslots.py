from datetime import date
from typing import List, Optional

from servicedesk.core.config import settings
from servicedesk.models.booking import ServiceType, LaundryType

SATURDAY = 5  # date.weekday()

SHOWER_SLOT_MINUTES = 30
ONSITE_LAUNDRY_SLOT_CAPACITY = 1

# Onsite laundry runs as fixed, overlapping time ranges.
WEEKDAY_LAUNDRY_SLOTS = (
    "07:30 - 08:30",
    "08:00 - 09:00",
    "08:30 - 09:45",
    "09:00 - 10:15",
    "09:30 - 11:45",
)
SATURDAY_LAUNDRY_SLOTS = (
    "08:30 - 10:00",
    "09:00 - 10:30",
    "09:30 - 11:00",
    "10:00 - 11:30",
    "10:30 - 12:00",
)


def _format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _half_hour_slots(start_minutes: int, end_minutes: int) -> List[str]:
    """Slot start times from start (inclusive) to end (exclusive)."""
    return [
        _format_minutes(t)
        for t in range(start_minutes, end_minutes, SHOWER_SLOT_MINUTES)
    ]


def shower_slots_for(service_date: date) -> List[str]:
    """
    Shower slot ids for a service day, in chronological order.

      - Saturday:   08:30 through 13:00
      - other days: 07:30 through 12:00
    """
    if service_date.weekday() == SATURDAY:
        return _half_hour_slots(8 * 60 + 30, 13 * 60 + 30)
    return _half_hour_slots(7 * 60 + 30, 12 * 60 + 30)


def laundry_slots_for(service_date: date) -> List[str]:
    """Onsite laundry slot ids (time ranges) for a service day."""
    if service_date.weekday() == SATURDAY:
        return list(SATURDAY_LAUNDRY_SLOTS)
    return list(WEEKDAY_LAUNDRY_SLOTS)


def slot_catalog(service_type: ServiceType, service_date: date) -> List[str]:
    if service_type == ServiceType.SHOWER:
        return shower_slots_for(service_date)
    return laundry_slots_for(service_date)


def slot_capacity(
    service_type: ServiceType,
    laundry_type: Optional[LaundryType] = None,
) -> Optional[int]:
    """
    Seats per slot; None means the booking is not slotted (offsite laundry).

    An onsite laundry slot is one washer run, so it holds a single guest. The
    live max_onsite_laundry_slots setting caps the day, not the slot.
    """
    if service_type == ServiceType.SHOWER:
        return settings.SHOWER_SLOT_CAPACITY
    if laundry_type == LaundryType.OFFSITE:
        return None
    return ONSITE_LAUNDRY_SLOT_CAPACITY

