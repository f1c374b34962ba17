import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from telehealth.main import app
from telehealth.infrastructure.database import Base, get_db, init_db
from telehealth.domain.auth.models import User, UserRole
from telehealth.domain.patients.models import Patient, Gender
from tests.factories import auth_headers, make_user, make_patient


# In-memory database shared by every connection of the test run
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(
    bind=test_engine, autocommit=False, autoflush=False, expire_on_commit=False
)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: pure function tests")
    config.addinivalue_line("markers", "integration: tests touching the database or HTTP layer")
    config.addinivalue_line("markers", "appointments: scheduling and booking")
    config.addinivalue_line("markers", "dashboard: provider dashboard figures")
    config.addinivalue_line("markers", "reports: report generation and download")


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    init_db(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def provider(db_session: Session) -> User:
    return make_user(db_session, UserRole.PROVIDER, "Dr. Gregory House", "Diagnostics")


@pytest.fixture(scope="function")
def other_provider(db_session: Session) -> User:
    return make_user(db_session, UserRole.PROVIDER, "Dr. Lisa Cuddy", "Endocrinology")


@pytest.fixture(scope="function")
def admin_user(db_session: Session) -> User:
    return make_user(db_session, UserRole.ADMIN, "Admin User")


@pytest.fixture(scope="function")
def patient_user(db_session: Session) -> User:
    return make_user(db_session, UserRole.PATIENT, "John Smith")


@pytest.fixture(scope="function")
def patient(db_session: Session, patient_user: User) -> Patient:
    """Patient record linked to patient_user, not yet assigned to anyone."""
    return make_patient(db_session, "John Smith", Gender.MALE, user=patient_user)


@pytest.fixture(scope="function")
def provider_headers(provider: User) -> dict:
    return auth_headers(provider)


@pytest.fixture(scope="function")
def patient_headers(patient_user: User) -> dict:
    return auth_headers(patient_user)


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user)
