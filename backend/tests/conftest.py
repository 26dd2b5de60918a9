"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from resortpms.database import Base, get_db
from resortpms.models import ontology  # noqa: F401
from resortpms.security.auth import Actor
from resortpms.security.permissions import (
    RECEPTIONIST_PERMISSIONS, HOUSEKEEPER_PERMISSIONS, SUPERVISOR_PERMISSIONS,
    GUEST_PERMISSIONS, OWNER_PERMISSIONS,
)
from resortpms.main import app

from factories import TODAY, auth_headers, make_room


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client sharing the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def events():
    """Collects published events; pass `events.append` as the publisher"""
    return []


# ============== Actors ==============

@pytest.fixture
def receptionist():
    return Actor("front-1", RECEPTIONIST_PERMISSIONS)


@pytest.fixture
def housekeeper():
    return Actor("hk-1", HOUSEKEEPER_PERMISSIONS)


@pytest.fixture
def supervisor():
    return Actor("sup-1", SUPERVISOR_PERMISSIONS)


@pytest.fixture
def guest_actor():
    return Actor("guest-1", GUEST_PERMISSIONS)


@pytest.fixture
def owner():
    return Actor("owner-1", OWNER_PERMISSIONS)


@pytest.fixture
def nobody():
    return Actor("nobody", frozenset())


@pytest.fixture
def receptionist_headers(receptionist):
    return auth_headers(receptionist)


@pytest.fixture
def supervisor_headers(supervisor):
    return auth_headers(supervisor)


@pytest.fixture
def guest_headers(guest_actor):
    return auth_headers(guest_actor)


@pytest.fixture
def owner_headers(owner):
    return auth_headers(owner)


@pytest.fixture
def room(db_session):
    return make_room(db_session)
