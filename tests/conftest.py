"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from approvebot.config.settings import settings
from approvebot.main import app


@pytest.fixture
def client() -> TestClient:
    """Return a FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def webhook_url() -> str:
    """Return the webhook URL for testing."""
    return "/webhook/github"


@pytest.fixture
def webhook_secret(monkeypatch) -> str:
    """Configure and return a webhook secret for signed requests."""
    secret = "test-secret"  # pragma: allowlist secret
    monkeypatch.setattr(settings, "github_webhook_secret", secret)
    return secret
