"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read once at import time, so the test environment has to be in
# place before any application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import io

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import Base, DairyCenter, DairyStaff, Farmer
from shared.infrastructure.db import get_db
from shared.security.password import hash_password


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FARMER_PHONE = "9812345678"
FARMER_PASSWORD = "farmer123"
FARMER_MEMBER_CODE = "M-17"
STAFF_PHONE = "9841234567"
STAFF_PASSWORD = "staff123"

CSV_HEADER = "Coll_date,Ne_date,Coll_time,Mem_code,Volume_lt,Fat_per,Snf,Rate,Amount,Remark"


def csv_bytes(*rows: str, header: str = CSV_HEADER) -> bytes:
    """Build an analyzer CSV upload from raw data lines."""
    return "\n".join([header, *rows]).encode("utf-8")


def csv_row(
    member_code: str = FARMER_MEMBER_CODE,
    coll_date: str = "2025-01-15",
    ne_date: str = "02/10/2081",
    coll_time: str = "06:30",
    volume: str = "12.5",
    snf: str = "8.5",
    remark: str = "",
) -> str:
    """One well-formed data line; override a field to break it."""
    return f"{coll_date},{ne_date},{coll_time},{member_code},{volume},4.2,{snf},55.0,687.5,{remark}"


def upload_stream(data: bytes) -> io.BytesIO:
    return io.BytesIO(data)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_tenant(db_session):
    """Create a test dairy center."""
    center = DairyCenter(name="Test Dairy", location="Chitwan", contact="056-123456")
    db_session.add(center)
    db_session.commit()
    db_session.refresh(center)
    return center


@pytest.fixture
def other_tenant(db_session):
    """A second dairy center for isolation tests."""
    center = DairyCenter(name="Other Dairy", location="Pokhara")
    db_session.add(center)
    db_session.commit()
    db_session.refresh(center)
    return center


@pytest.fixture
def seed_farmer(db_session, seed_tenant):
    """Create a registered farmer in the test dairy center."""
    farmer = Farmer(
        tenant_id=seed_tenant.id,
        name="Ram Thapa",
        phone=FARMER_PHONE,
        member_code=FARMER_MEMBER_CODE,
        password_hash=hash_password(FARMER_PASSWORD),
    )
    db_session.add(farmer)
    db_session.commit()
    db_session.refresh(farmer)
    return farmer


@pytest.fixture
def seed_staff(db_session, seed_tenant):
    """Create a staff member in the test dairy center."""
    staff = DairyStaff(
        tenant_id=seed_tenant.id,
        name="Sita Sharma",
        phone=STAFF_PHONE,
        password_hash=hash_password(STAFF_PASSWORD),
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def staff_auth_headers(client, seed_staff, seed_tenant):
    """Get authentication headers for staff API calls."""
    response = client.post(
        "/api/auth/login",
        json={
            "phone": STAFF_PHONE,
            "password": STAFF_PASSWORD,
            "dairy_center_id": seed_tenant.id,
        },
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def farmer_auth_headers(client, seed_farmer, seed_tenant):
    """Get authentication headers for farmer API calls."""
    response = client.post(
        "/api/auth/login",
        json={
            "phone": FARMER_PHONE,
            "password": FARMER_PASSWORD,
            "member_code": FARMER_MEMBER_CODE,
            "dairy_center_id": seed_tenant.id,
        },
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
