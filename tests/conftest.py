import pytest
from datetime import datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studypace.api.deps import get_db
from studypace.database import Base
from studypace.main import app
from studypace.models.user import User
from studypace.models.document import Document
from studypace.api.deps import get_current_user
from studypace.services.achievements import AchievementService


# 1. SETUP TEST DATABASE
# We use SQLite in-memory with StaticPool so the data persists
# for the duration of a single test function but isolates threads.
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --- FIXTURE START ---
@pytest.fixture(scope="session", autouse=True)
def use_test_database():
    """
    Point the app's startup hook (create_all + catalog seeding)
    at the in-memory database instead of the real file.
    """
    import studypace.main as main_module

    main_module.engine = engine
    main_module.SessionLocal = TestingSessionLocal


# --- FIXTURE END ---

@pytest.fixture
def now():
    """A fixed 'now' for service tests (a Wednesday, mid-morning UTC)."""
    return datetime(2026, 3, 11, 9, 30, 0)


# 2. DB SESSION FIXTURE
@pytest.fixture(scope="function")
def db():
    """
    Creates a fresh database for every single test case.
    """
    # Create Tables
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=engine)


# 3. CLIENT FIXTURE (Unauthenticated)
@pytest.fixture(scope="function")
def client(db) -> Generator:
    """
    Returns a TestClient with the database dependency overridden.
    """

    def override_get_db():
        try:
            yield db
        finally:
            # Do NOT close the session here!
            # The 'db' fixture handles the teardown at the end of the test function.
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    # Reset overrides after test
    app.dependency_overrides.clear()


# 4. USER FIXTURES
@pytest.fixture(scope="function")
def normal_user(db):
    user = User(
        username="testuser",
        email="test@example.com",
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_user(db):
    user = User(
        username="otheruser",
        email="other@example.com",
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# 5. AUTHENTICATED CLIENT FIXTURE
@pytest.fixture(scope="function")
def auth_client(client, normal_user):
    """
    Returns a client that is already "logged in" as a normal user.
    We do this by overriding the get_current_user dependency directly.
    """
    app.dependency_overrides[get_current_user] = lambda: normal_user
    return client


# 6. DOMAIN FIXTURES
@pytest.fixture(scope="function")
def catalog(db):
    """Seeds the default achievement catalog (the app does this at startup)."""
    AchievementService(db).initialize_catalog()
    db.commit()


@pytest.fixture(scope="function")
def document(db, normal_user):
    doc = Document(user_id=normal_user.id, title="Linear Algebra Notes", total_pages=100)
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc
