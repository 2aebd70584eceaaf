from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from servicedesk.core.config import settings
from servicedesk.core.security import decode_token
from servicedesk.db.session import get_db
from servicedesk.models.user import StaffRole, StaffUser

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> StaffUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_token(token)
    if payload is None or not payload.sub:
        raise credentials_exception
    try:
        user_uuid = UUID(payload.sub)
    except ValueError:
        raise credentials_exception

    user = db.query(StaffUser).filter(StaffUser.id == user_uuid).first()
    if not user:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


def get_current_staff_user(current_user: StaffUser = Depends(get_current_user)) -> StaffUser:
    """Admins and staff; volunteers can book but not block slots."""
    if current_user.role not in (StaffRole.ADMIN, StaffRole.STAFF):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff privileges required",
        )
    return current_user


def get_current_admin_user(current_user: StaffUser = Depends(get_current_user)) -> StaffUser:
    if current_user.role != StaffRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
