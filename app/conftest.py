"""Shared fixtures: an in-memory SQLite database standing in for MySQL."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import students.models  # noqa: F401  (registers the students table)
from db import Base, StudentPool
from main import create_app
from settings import Settings


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def pool(engine):
    return StudentPool(engine)


@pytest.fixture
def app_settings():
    return Settings(_env_file=None, service_name="student-backend-test")


@pytest.fixture
def client(app_settings, pool):
    app = create_app(app_settings, pool=pool)
    with TestClient(app) as c:
        yield c
