import os
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from medislot.main import app  # noqa: E402
from medislot.core.database import (  # noqa: E402
    Base, RedisMock, SessionLocal, engine, get_db, get_redis
)
from medislot.core.security import UserRole, create_access_token, get_password_hash  # noqa: E402
from medislot.models import Doctor, Patient, User  # noqa: E402

PASSWORD = "TestPassword123"
PASSWORD_HASH = get_password_hash(PASSWORD)


def next_weekday(weekday: int, after: date = None) -> date:
    """The first date strictly after ``after`` (default today) falling on ``weekday``."""
    after = after or date.today()
    days_ahead = (weekday - after.weekday()) % 7 or 7
    return after + timedelta(days=days_ahead)


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(test_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(test_db):
    redis_mock = RedisMock()

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_mock
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_patient(db):
    def _make(email="patient@example.com", first_name="Pat", last_name="Smith"):
        user = User(email=email, password_hash=PASSWORD_HASH, role=UserRole.PATIENT, is_active=True)
        user.patient = Patient(first_name=first_name, last_name=last_name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_doctor(db):
    def _make(
        email="doctor@example.com",
        license_number="LIC-0001",
        verified=True,
        consultation_fee=50.0,
        specialization="Cardiology",
    ):
        user = User(email=email, password_hash=PASSWORD_HASH, role=UserRole.DOCTOR, is_active=True)
        user.doctor = Doctor(
            first_name="Grace",
            last_name="Hopper",
            specialization=specialization,
            license_number=license_number,
            consultation_fee=consultation_fee,
            is_verified=verified,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_admin(db):
    def _make(email="admin@example.com"):
        user = User(email=email, password_hash=PASSWORD_HASH, role=UserRole.ADMIN, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def next_monday():
    return next_weekday(0)
