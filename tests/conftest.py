"""
Pytest configuration for the task manager tests.

SECRET_KEY, ADMIN_PASSWORD and DATABASE_URL must be set before any app
imports because config.get_settings() is cached and main.py refuses to
start without the two secrets.
"""

import os

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_PASSWORD"] = "startup-admin-pass"

import re

import pytest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from auth import ensure_admin
from database import Base, get_db
from main import app, get_task_repository
from repository import SqlTaskRepository

from .fakes import FakeTaskRepository

# In-memory SQLite shared by every connection, so the TestClient thread
# sees the same data as the test body.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db_session):
    return SqlTaskRepository(db_session)


@pytest.fixture
def client(db_session):
    """Anonymous client with the database dependency pointed at the test DB"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client, db_session):
    """Client holding a logged-in admin session"""
    ensure_admin(db_session, ADMIN_USERNAME, ADMIN_PASSWORD)
    response = client.post(
        "/login",
        data={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


@pytest.fixture
def csrf_token(admin_client):
    """The form token issued to the logged-in session"""
    page = admin_client.get("/tasks/create")
    return re.search(r'name="csrf_token" value="([^"]+)"', page.text).group(1)


@pytest.fixture
def fake_repo():
    return FakeTaskRepository()


@pytest.fixture
def fake_client(admin_client, fake_repo):
    """Logged-in client whose task pages talk to an in-memory repository"""
    app.dependency_overrides[get_task_repository] = lambda: fake_repo
    return admin_client
