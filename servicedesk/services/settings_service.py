"""
Live service settings: one row, re-read by every operation that needs it.
"""
from typing import Optional

from sqlalchemy.orm import Session

from servicedesk.core.config import settings
from servicedesk.core.service_day import now_utc
from servicedesk.models.service_settings import ServiceSettings
from servicedesk.services.transaction import commit

SETTINGS_ROW_ID = 1


def get_service_settings(db: Session) -> ServiceSettings:
    """Return the settings row, creating it from the configured defaults."""
    row = db.get(ServiceSettings, SETTINGS_ROW_ID, populate_existing=True)
    if row is None:
        row = ServiceSettings(
            id=SETTINGS_ROW_ID,
            max_onsite_laundry_slots=settings.DEFAULT_MAX_ONSITE_LAUNDRY_SLOTS,
            offsite_laundry_enabled=settings.DEFAULT_OFFSITE_LAUNDRY_ENABLED,
        )
        db.add(row)
        db.flush()
    return row


def update_service_settings(
    db: Session,
    max_onsite_laundry_slots: Optional[int] = None,
    offsite_laundry_enabled: Optional[bool] = None,
) -> ServiceSettings:
    row = get_service_settings(db)
    if max_onsite_laundry_slots is not None:
        if max_onsite_laundry_slots < 1:
            raise ValueError("max_onsite_laundry_slots must be at least 1")
        row.max_onsite_laundry_slots = max_onsite_laundry_slots
    if offsite_laundry_enabled is not None:
        row.offsite_laundry_enabled = offsite_laundry_enabled
    row.updated_at = now_utc()
    commit(db)
    db.refresh(row)
    return row
