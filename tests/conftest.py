"""
Shared fixtures.

Every test runs in its own temporary directory with a clean environment:
no AI keys, a fixed token secret and a throwaway JSON store. AI providers
are replaced by in-process fakes; no test makes a real API call.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from spendwise.agents import ProviderChain, ReceiptProvider
from spendwise.api import create_app
from spendwise.audit import AuditLogger
from spendwise.config import get_settings
from spendwise.models.transaction import ReceiptClassification
from spendwise.orchestrator import create_app_components
from spendwise.services.storage import JsonFileStore


ENV_VARS = [
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "DB_FILE",
    "BUDGET_LIMITS",
    "DEFAULT_ADMIN_USERNAME",
    "DEFAULT_ADMIN_PASSWORD",
    "MAX_UPLOAD_SIZE_MB",
    "LOG_LEVEL",
]


class FakeProvider(ReceiptProvider):
    """Provider double that returns canned results or raises."""

    def __init__(
        self,
        name: str,
        result: Optional[ReceiptClassification] = None,
        error: Optional[Exception] = None,
        answer: str = "You spent the most on Food.",
        configured: bool = True,
    ):
        super().__init__(max_attempts=1)
        self.name = name
        self.result = result
        self.error = error
        self.answer = answer
        self.configured = configured
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def classify_receipt(self, content, mime_type):
        self.calls.append(("classify_receipt", content, mime_type))
        if self.error:
            raise self.error
        return self.result

    async def complete_chat(self, system_prompt, user_prompt):
        self.calls.append(("complete_chat", system_prompt, user_prompt))
        if self.error:
            raise self.error
        return self.answer


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test in a fresh directory with predictable settings."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "test-secret-value-for-spendwise")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db.json"


@pytest.fixture
def store(db_path):
    return JsonFileStore(db_path)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def primary():
    return FakeProvider(
        "openai",
        result=ReceiptClassification(item="Coffee Corner", amount="4.50", category="Food"),
    )


@pytest.fixture
def fallback():
    return FakeProvider(
        "gemini",
        result=ReceiptClassification(item="Backup Store", amount=9.99, category="Tech"),
    )


@pytest.fixture
def chain(primary, fallback, audit_logger):
    return ProviderChain([primary, fallback], audit_logger=audit_logger)


@pytest.fixture
def client(store, chain):
    components = create_app_components(storage=store, chain=chain)
    app = create_app(components)
    with TestClient(app) as test_client:
        yield test_client


def _login(client, username, password):
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, "admin", "admin123")


@pytest.fixture
def viewer_headers(client, admin_headers):
    response = client.post(
        "/api/admin/users",
        json={"username": "viewer", "password": "viewer-pass"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return _login(client, "viewer", "viewer-pass")
