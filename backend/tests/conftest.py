import os

# Settings are read once at import time; point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["INGEST_TOKEN"] = "test-token"
os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from company_intel.core.db import Base, SessionLocal, engine
from company_intel.models import company, fact, insight, metric, news_event, source  # noqa: F401
from company_intel.main import app


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def tables():
    """Schema only; for tests that go through the HTTP layer."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(tables):
    with TestClient(app) as c:
        yield c
