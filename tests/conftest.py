import itertools
import os

# Settings are read at import time, so the test environment goes in first.
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"

import pytest
from fastapi.testclient import TestClient

import partner_crm.models  # noqa: F401
from partner_crm.core.rate_limiter import limiter
from partner_crm.core.security import create_access_token, hash_password
from partner_crm.db.base import Base
from partner_crm.db.session import SessionLocal, engine
from partner_crm.main import app
from partner_crm.models.user import User, UserStatus
from partner_crm.services.cache_service import cache_service

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)

_emails = itertools.count(1)


@pytest.fixture(autouse=True)
def _isolated_state():
    """Fresh schema, empty permission cache and rate limiting off for every test."""
    Base.metadata.create_all(bind=engine)
    cache_service.invalidate_pattern("*")
    limiter.enabled = False
    limiter.reset()
    yield
    limiter.enabled = False
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(role="partner", email=None, name=None, manager_id=None, status=UserStatus.active.value):
        user = User(
            email=email or f"{role}{next(_emails)}@test.local",
            hashed_password=PASSWORD_HASH,
            name=name or role.title(),
            role=role,
            status=status,
            manager_id=manager_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return _headers


@pytest.fixture
def superadmin(make_user):
    return make_user("superadmin", name="Root")


@pytest.fixture
def admin(make_user):
    return make_user("administrator", name="Ana Admin")


@pytest.fixture
def manager(make_user):
    return make_user("manager", name="Marta Manager")


@pytest.fixture
def partner(make_user, manager):
    return make_user("partner", name="Paulo Partner", manager_id=manager.id)
