import os

# Must be set before the app (and its module-level config) is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-sessions")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TMDB_API_KEY", "test-tmdb-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from screenscore.database import Base, get_db
from screenscore.main import app
from screenscore.models.user import User
from screenscore.services.assistant_service import get_assistant
from screenscore.services.tmdb_service import get_catalog
from screenscore.utils.security import SESSION_COOKIE_NAME, hash_password, issue_session_token

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    """FastAPI test client with the database dependency overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_catalog, None)
    app.dependency_overrides.pop(get_assistant, None)


def create_user(session, username="alice", email="a@x.com", password="secret"):
    user = User(username=username, email=email, password_hash=hash_password(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def sign_in(client, user):
    """Put a valid session cookie for user on the test client."""
    token, _ = issue_session_token(user.id, user.username)
    client.cookies.set(SESSION_COOKIE_NAME, token)
    return token


@pytest.fixture
def test_user(db_session):
    return create_user(db_session)


@pytest.fixture
def auth_client(client, test_user):
    """Test client already carrying test_user's session cookie."""
    sign_in(client, test_user)
    return client
