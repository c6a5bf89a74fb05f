import sys
from pathlib import Path

# Put the project root on PYTHONPATH first
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# SQLite engine for tests, created BEFORE importing the app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: swap engine and SessionLocal in core.database BEFORE importing the app
import taskdock.core.database
taskdock.core.database.engine = test_engine
taskdock.core.database.SessionLocal = TestingSessionLocal

# Now import the app (it will use the SQLite engine)
from taskdock.core.database import Base, get_db
from taskdock.core.deps import get_storage
from taskdock.core.security import create_access_token
from taskdock.main import app
from taskdock.models.user import User
from fakes import FakeStorage

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

# Override the DB dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_teardown():
    """Create and clean the DB around each test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def storage():
    """Fake storage adapter injected in place of the configured backend"""
    fake = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client(storage):
    """FastAPI test client"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """DB session for tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


def create_test_user(email=None, name="Test User"):
    unique_id = str(uuid.uuid4())[:8]
    db = TestingSessionLocal()
    user = User(email=email or f"user{unique_id}@example.com", name=name)
    user.set_password("password123")
    db.add(user)
    db.commit()
    db.refresh(user)
    db.close()
    return user


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
def user():
    return create_test_user(name="Alice")


@pytest.fixture
def other_user():
    return create_test_user(name="Bob")


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)
