from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from servicedesk.db.session import get_db
from servicedesk.core.config import settings
from servicedesk.core.security import create_access_token, get_password_hash, verify_password

from servicedesk.api.deps import get_current_user
from servicedesk.models.user import StaffUser
from servicedesk.schemas.user import StaffUserCreate, Token, StaffUser as StaffUserSchema

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token_response(user: StaffUser) -> Token:
    return Token(
        access_token=create_access_token(subject=str(user.id), role=user.role.value),
        token_type="bearer",
        user=StaffUserSchema.model_validate(user),
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(body: StaffUserCreate, db: Session = Depends(get_db)):
    """Create a staff account. Accounts are handed out by whoever holds the admin secret."""
    if body.admin_secret != settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )
    if db.query(StaffUser).filter(StaffUser.email == body.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    user = StaffUser(
        email=body.email,
        password_hash=get_password_hash(body.password),
        full_name=body.full_name,
        role=body.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _build_token_response(user)


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = db.query(StaffUser).filter(StaffUser.email == form_data.username).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return _build_token_response(user)


@router.get("/me", response_model=StaffUserSchema)
def read_me(current_user: StaffUser = Depends(get_current_user)):
    return current_user
