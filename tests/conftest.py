import os
from datetime import datetime
from typing import Optional

# Point the application engine at a throwaway database before importing it.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from user_manager.database import Base, get_db  # noqa: E402
from user_manager.main import app  # noqa: E402
from user_manager.models import User  # noqa: E402

# In-memory SQLite database shared across connections via StaticPool.
TEST_DATABASE_URL = "sqlite://"


engine_test = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine_test,
)


@pytest.fixture()
def db_session():
    """Provide a fresh test database session for each test.

    The schema is dropped and recreated for every test function,
    ensuring complete isolation between tests.
    """
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    """TestClient whose requests are served from the in-memory database."""

    def override_get_db():
        # Session cleanup is handled by the db_session fixture.
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def user_factory(db_session):
    """Factory fixture that inserts users directly, bypassing the API."""

    def _create_user(
        email: str,
        username: str = "someone",
        fullname: str = "Some One",
        age: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        profilepic: Optional[str] = None,
    ) -> User:
        user = User(
            username=username,
            fullname=fullname,
            email=email,
            age=age,
            profilepic=profilepic,
        )
        if created_at is not None:
            user.created_at = created_at
        if updated_at is not None:
            user.updated_at = updated_at
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture()
def alice_payload():
    return {
        "username": "alice",
        "fullname": "Alice Example",
        "email": "alice@example.com",
    }
