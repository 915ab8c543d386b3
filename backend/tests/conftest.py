import os

# Must be set before any tabsync import so settings resolve to test mode.
os.environ["TESTING"] = "1"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import tabsync.database as _db_mod  # noqa: E402
from tabsync.database import Base  # noqa: E402
from tabsync.database import get_db  # noqa: E402
from tabsync.database import make_engine  # noqa: E402
from tabsync.database import make_sessionmaker  # noqa: E402
from tabsync.models.models import User  # noqa: E402

# Create a test database - using in-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

test_engine = make_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool for in-memory database
)

TestingSessionLocal = make_sessionmaker(test_engine)

# Route everything that asks for the default factory (health probe,
# maintenance helpers) to the test database.
_db_mod.default_engine = test_engine
_db_mod.default_session_factory = TestingSessionLocal

from helpers.payloads import INSTANCE_A  # noqa: E402
from tabsync.main import app  # noqa: E402


@pytest.fixture
def db_session():
    """
    Creates a fresh database for each test, then tears it down after the test is done.
    """
    Base.metadata.create_all(bind=test_engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def dev_user(db_session):
    """The principal the development auth strategy resolves to."""
    user = User(email="dev@local", display_name="Developer", is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session, dev_user):
    user = User(email="other@example.com", display_name="Other", is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def client(db_session, dev_user):
    """
    Create a FastAPI TestClient with the test database dependency.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    client = TestClient(app)
    yield client

    app.dependency_overrides = {}


@pytest.fixture
def instance_headers():
    return {"X-Instance-ID": INSTANCE_A}

