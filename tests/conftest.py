"""
Test configuration for the health camp backend.
"""
import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from healthcamp.database import Base, get_db
from healthcamp.main import app
from healthcamp.auth.models import Account, UserRole, Gender
from healthcamp.core.security import hash_password, create_access_token
from healthcamp.doctors.models import Doctor

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)
    
    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        
    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass
    
    # Override the get_db dependency
    app.dependency_overrides[get_db] = override_get_db
    
    # Create test client
    with TestClient(app) as client:
        yield client
    
    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def make_account(db):
    """
    Factory creating accounts directly in the database.
    """
    counter = {"n": 0}

    def _make_account(role=UserRole.USER, password=DEFAULT_PASSWORD, **fields):
        counter["n"] += 1
        n = counter["n"]
        values = {
            "first_name": f"Test{n}",
            "last_name": "Account",
            "email": f"account{n}@example.com",
            "phone_number": f"98765{n:05d}",
            "date_of_birth": date(1990, 1, 1),
            "gender": Gender.FEMALE,
        }
        values.update(fields)
        account = Account(role=role, password_hash=hash_password(password), **values)
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make_account


@pytest.fixture
def make_doctor(db, make_account):
    """
    Factory creating a doctor account together with its directory entry.
    """
    def _make_doctor(name="Dr. Test", **fields):
        account = make_account(role=UserRole.DOCTOR, date_of_birth=None, gender=None, **fields)
        doctor = Doctor(
            account_id=account.id,
            name=name,
            specialization="General Medicine",
            qualification="MBBS",
            experience_years=5,
            phone_number=account.phone_number,
            email=account.email,
            location="Pune",
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def admin(make_account):
    return make_account(role=UserRole.ADMIN, first_name="Site", last_name="Admin", email="admin@example.com")


def auth_headers(account_id: int) -> dict:
    """Bearer header carrying a fresh credential for the account."""
    return {"Authorization": f"Bearer {create_access_token(account_id)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def session_factory(db):
    """Independent sessions on the test database, for interleaving tests."""
    return TestingSessionLocal
