"""
Shared fixtures.

All five services run in-process against one in-memory SQLite database.
Calls between services go through ``httpx.ASGITransport`` so the real routes
answer them.
"""
import os
from datetime import date, timedelta

# Set environment for testing before the settings are loaded
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_DEV_MODE"] = "1"
os.environ["RATE_LIMIT_REQUESTS"] = "1000"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from healthbook.api.deps import get_service_clients
from healthbook.clients.service_client import ServiceClients
from healthbook.core.config import settings
from healthbook.core.database import Base, get_db, get_redis, get_session_factory
from healthbook.core.security import UserRole, create_access_token, get_password_hash
from healthbook.main import SERVICES, create_app
from healthbook.models.user import User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

class FakeRedis:
    """The few redis commands the rate limiter uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = str(value)

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    def delete(self, key):
        self.store.pop(key, None)

apps = {name: create_app(name) for name in SERVICES}

service_clients = ServiceClients.from_settings(
    settings,
    transports={
        name: httpx.ASGITransport(app=apps[name], raise_app_exceptions=False)
        for name in ("user", "doctor", "appointment", "notification")
    },
)

def next_weekday(weekday: int) -> date:
    """Next date (strictly after today) falling on the given weekday, Monday=0."""
    today = date.today()
    days_ahead = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)

@pytest.fixture
def fake_redis():
    return FakeRedis()

@pytest.fixture(scope="function")
def test_db(fake_redis):
    # Create tables
    Base.metadata.create_all(bind=engine)
    for app in apps.values():
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
        app.dependency_overrides[get_service_clients] = lambda: service_clients
        app.dependency_overrides[get_redis] = lambda: fake_redis
    yield
    for app in apps.values():
        app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def user_client(test_db):
    return TestClient(apps["user"])

@pytest.fixture
def doctor_client(test_db):
    return TestClient(apps["doctor"])

@pytest.fixture
def appointment_client(test_db):
    return TestClient(apps["appointment"])

@pytest.fixture
def feedback_client(test_db):
    return TestClient(apps["feedback"])

@pytest.fixture
def notification_client(test_db):
    return TestClient(apps["notification"])

def auth(token: str) -> dict:
    return {"x-auth-token": token}

def register(user_client, name: str, email: str, role: str = "patient") -> dict:
    response = user_client.post("/api/users/register", json={
        "name": name,
        "email": email,
        "password": "secret123",
        "role": role,
        "phone": "555-0100",
    })
    assert response.status_code == 201, response.text
    return response.json()

@pytest.fixture
def patient(user_client):
    return register(user_client, "Pat Patient", "patient@example.com")

@pytest.fixture
def other_patient(user_client):
    return register(user_client, "Olive Other", "other@example.com")

@pytest.fixture
def doctor_user(user_client):
    return register(user_client, "Dana Doctor", "doctor@example.com", role="doctor")

@pytest.fixture
def admin(db_session):
    user = User(
        email="admin@example.com",
        password_hash=get_password_hash("adminpass"),
        name="Ada Admin",
        role=UserRole.ADMIN,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return {
        "token": create_access_token(user.id, user.email, user.role),
        "user": {"id": user.id, "email": user.email, "role": "admin"},
    }

@pytest.fixture
def doctor_profile(doctor_client, doctor_user):
    """Doctor with a Monday 09:00-11:00 template and a Friday afternoon off."""
    response = doctor_client.post(
        "/api/doctors",
        json={
            "userId": doctor_user["user"]["id"],
            "experience": 8,
            "bio": "General practice",
            "consultationFee": 50,
            "qualifications": [
                {"degree": "MD", "institution": "State University", "year": 2012}
            ],
            "availableSlots": [
                {"day": "Monday", "startTime": "09:00", "endTime": "11:00"},
                {"day": "Friday", "startTime": "13:00", "endTime": "15:00", "isAvailable": False},
            ],
        },
        headers=auth(doctor_user["token"]),
    )
    assert response.status_code == 201, response.text
    return response.json()

@pytest.fixture
def monday():
    return next_weekday(0)

def book(appointment_client, token: str, doctor_id: str, day: date, start: str = "09:00", end: str = "09:30"):
    return appointment_client.post(
        "/api/appointments",
        json={
            "doctorId": doctor_id,
            "date": day.isoformat(),
            "startTime": start,
            "endTime": end,
            "reason": "Checkup",
        },
        headers=auth(token),
    )
