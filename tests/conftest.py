"""Test configuration and fixtures."""

import os
import sys
from datetime import date, timedelta

import pytest

# Add project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Configure the app BEFORE app.core.config is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["ENVIRONMENT"] = "test"

from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine, get_db
from app.main import app
from app.models import Seminar, SeminarSession, User
from app.services.jwt_service import create_user_token
from app.services.registration_service import RegistrationService


@pytest.fixture(autouse=True)
def setup_test_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Database session fixture."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(first_name="Ann", last_name="Learner", is_admin=False, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@seminars.org",
            first_name=first_name,
            last_name=last_name,
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_seminar(db):
    """Seminar with ``total_sessions`` scheduled sessions, one a week."""

    def _make_seminar(
        title="Tax Seminar",
        year=2025,
        total_sessions=4,
        credits_per_session=2.0,
        status="active",
    ):
        seminar = Seminar(
            title=title,
            year=year,
            total_sessions=total_sessions,
            credits_per_session=credits_per_session,
            status=status,
        )
        db.add(seminar)
        db.flush()

        first = date(year, 1, 15)
        for number in range(1, (total_sessions or 0) + 1):
            db.add(
                SeminarSession(
                    seminar_id=seminar.id,
                    session_number=number,
                    session_date=first + timedelta(weeks=number - 1),
                    topic=f"Session {number}",
                )
            )
        db.commit()
        return seminar

    return _make_seminar


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def operator(make_user):
    return make_user(first_name="Front", last_name="Desk", is_admin=True)


@pytest.fixture
def seminar(make_seminar):
    return make_seminar()


@pytest.fixture
def sessions(seminar):
    return list(seminar.sessions)


@pytest.fixture
def registration(db, user, seminar):
    return RegistrationService(db).create_registration(user.id, seminar.id, order_id="ORD-1")


@pytest.fixture
def client(db):
    """TestClient sharing the test's database session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _auth_headers


@pytest.fixture
def operator_headers(operator, auth_headers):
    return auth_headers(operator)


@pytest.fixture
def user_headers(user, auth_headers):
    return auth_headers(user)
