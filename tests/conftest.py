import os

# Settings are read at import time; point them at SQLite before anything loads.
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from servicedesk.core.security import create_access_token
from servicedesk.db.base import Base
from servicedesk.db.session import get_db
from servicedesk.main import app
from servicedesk.models.user import StaffRole, StaffUser

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db, email: str, role: StaffRole) -> StaffUser:
    # Tokens are minted directly, so the hash is never checked.
    user = StaffUser(email=email, password_hash="unused", full_name=email.split("@")[0], role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _auth_header(user: StaffUser) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id), role=user.role.value)}"}


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def volunteer_headers(db):
    return _auth_header(_make_user(db, "volunteer@example.org", StaffRole.VOLUNTEER))


@pytest.fixture
def staff_headers(db):
    return _auth_header(_make_user(db, "staff@example.org", StaffRole.STAFF))


@pytest.fixture
def admin_headers(db):
    return _auth_header(_make_user(db, "admin@example.org", StaffRole.ADMIN))
