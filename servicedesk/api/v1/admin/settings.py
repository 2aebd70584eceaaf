from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.api.deps import get_current_user, get_current_admin_user
from servicedesk.models.user import StaffUser
from servicedesk.schemas.settings import ServiceSettings as ServiceSettingsSchema, ServiceSettingsUpdate
from servicedesk.services.settings_service import get_service_settings, update_service_settings

router = APIRouter(prefix="/admin/settings", tags=["Admin - Settings"])


@router.get("/", response_model=ServiceSettingsSchema)
def read_settings(
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user),
):
    return get_service_settings(db)


@router.patch("/", response_model=ServiceSettingsSchema)
def patch_settings(
    data: ServiceSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_admin_user),
):
    """Takes effect on the next booking; existing bookings are not re-checked."""
    return update_service_settings(db, **data.model_dump(exclude_unset=True))
