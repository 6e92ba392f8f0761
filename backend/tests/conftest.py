"""
Test configuration and shared fixtures for the Study Space test suite.

Tests run against an in-memory SQLite database by default. Set
TEST_DATABASE_URL to run the same suite against PostgreSQL.
Each test gets freshly created tables.
"""

import os

# Must be set before core.database builds the application engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base

# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
import models  # noqa: F401


# Test database URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session")
def db_engine():
    """
    Create a database engine for the test session.

    SQLite in-memory databases live on a single connection, so StaticPool
    shares it between the test session and the TestClient thread.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL, echo=False)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Provide a database session on a clean schema.

    Tables are created before and dropped after every test, so application
    code is free to commit.
    """
    Base.metadata.create_all(bind=db_engine)

    TestingSession = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture
def client(db_session):
    """Create test client with database override."""
    from fastapi.testclient import TestClient

    from core.database import get_db
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.pop(get_db, None)
