# backend/tests/conftest.py

from __future__ import annotations

from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from taskflow.api.deps import get_completion_client_factory, get_db
from taskflow.core.config import Settings, get_settings
from taskflow.main import app
from taskflow.services.credentials import create_credential
from taskflow.services.db_client import TaskFlowDB

from .fakes import FakeCompletionClient, FakeCompletionFactory, FakeSupabaseClient


@pytest.fixture()
def settings() -> Settings:
    """
    Settings built without reading backend/.env.

    PBKDF2 rounds are kept low so login-heavy tests stay fast.
    """
    return Settings(
        _env_file=None,
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
        OPENAI_API_KEY="sk-fallback",
        OPENAI_API_KEY_PATH="",
        PIN_HASH_ROUNDS=1000,
    )


@pytest.fixture()
def supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture()
def db(supabase: FakeSupabaseClient) -> TaskFlowDB:
    return TaskFlowDB(supabase)


@pytest.fixture()
def llm() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture()
def llm_factory(llm: FakeCompletionClient) -> FakeCompletionFactory:
    return FakeCompletionFactory(llm)


@pytest.fixture()
def client(settings: Settings, db: TaskFlowDB, llm_factory: FakeCompletionFactory):
    """
    TestClient with the record store and completion API swapped for fakes.
    """
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_completion_client_factory] = lambda: llm_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db: TaskFlowDB, settings: Settings) -> Callable[..., Dict]:
    """Create a credential row directly, bypassing the API."""

    def _make(username: str, pin: str = "1234", **kwargs) -> Dict:
        return create_credential(db, settings, username, pin, **kwargs)

    return _make


@pytest.fixture()
def login(client: TestClient) -> Callable[[str, str], Dict[str, str]]:
    """Log in through the API and return the session header."""

    def _login(username: str, pin: str = "1234") -> Dict[str, str]:
        response = client.post("/api/v1/auth/login", json={"username": username, "pin": pin})
        assert response.status_code == 200, response.text
        return {"X-Session": response.json()["token"]}

    return _login


@pytest.fixture()
def alice(make_user, login) -> Dict[str, str]:
    make_user("alice", "1234", display_name="Alice")
    return login("alice", "1234")


@pytest.fixture()
def bob(make_user, login) -> Dict[str, str]:
    make_user("bob", "5678")
    return login("bob", "5678")


@pytest.fixture()
def admin(make_user, login) -> Dict[str, str]:
    make_user("root", "9999", is_admin=True)
    return login("root", "9999")
