# /tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.database import get_db, enable_sqlite_foreign_keys
from app.core import security
from app.core.config import ProviderConfig
from app.models.chat_model import WebSearchResult
from app.services.database_service import DatabaseService
from app.services.llm_providers import CompletionClient
from app.services.provider_orchestrator import ProviderOrchestrator, get_provider_orchestrator
from app.services.search_service import get_search_service
from app.services.storage_service import BlobStore, get_blob_store


# --- Test Doubles ---

class FakeCompletionClient(CompletionClient):
    """Provider stand-in that records every call and replies or raises on demand."""

    def __init__(self, name: str, reply: str = "", error: Exception = None):
        self.name = name
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, messages, params):
        self.calls.append((messages, params))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSearchService:
    def __init__(self, results=None):
        self.results = results or []
        self.queries = []

    async def search(self, query, limit=5):
        self.queries.append(query)
        return list(self.results)


def make_search_results(count: int):
    return [
        WebSearchResult(title=f"Result {i}", url=f"https://example.com/{i}", snippet=f"Snippet {i}")
        for i in range(1, count + 1)
    ]


# --- Database Fixtures ---

@pytest.fixture
def db_session():
    """A fresh in-memory SQLite database per test, shared across threads via StaticPool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_service(db_session):
    return DatabaseService(db_session)


@pytest.fixture
def user(db_service):
    return db_service.create_user({"email": "alice@example.com", "password_hash": "unused", "name": "Alice"})


@pytest.fixture
def other_user(db_service):
    return db_service.create_user({"email": "bob@example.com", "password_hash": "unused", "name": "Bob"})


def auth_headers_for(user_record):
    token = security.create_access_token(subject=str(user_record.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


# --- Provider / Search / Storage Fixtures ---

@pytest.fixture
def primary_client():
    return FakeCompletionClient("primary", reply="Primary reply")


@pytest.fixture
def secondary_client():
    return FakeCompletionClient("secondary", reply="Secondary reply")


@pytest.fixture
def provider_config():
    return ProviderConfig(primary_key="sk-or-test", secondary_key="gemini-test")


@pytest.fixture
def orchestrator(provider_config, primary_client, secondary_client):
    return ProviderOrchestrator(provider_config, primary=primary_client, secondary=secondary_client)


@pytest.fixture
def search_service():
    return FakeSearchService()


@pytest.fixture
def blob_store(tmp_path):
    return BlobStore(str(tmp_path / "blobs"), "http://testserver")


@pytest.fixture
def unconfigured_orchestrator():
    """Neither provider has a usable credential; the fake clients must never be called."""
    primary = FakeCompletionClient("primary", reply="unused")
    secondary = FakeCompletionClient("secondary", reply="unused")
    return ProviderOrchestrator(ProviderConfig(primary_key=None, secondary_key=None), primary, secondary)


@pytest.fixture
def make_client(db_session, search_service, blob_store):
    """Factory for a TestClient wired to the in-memory database and the given orchestrator."""
    def override_get_db():
        yield db_session

    def _make(orchestrator):
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_provider_orchestrator] = lambda: orchestrator
        app.dependency_overrides[get_search_service] = lambda: search_service
        app.dependency_overrides[get_blob_store] = lambda: blob_store
        return TestClient(app)

    try:
        yield _make
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, orchestrator):
    return make_client(orchestrator)
