"""Fixtures for API unit tests: in-memory repositories, no audit queue, bearer tokens, AsyncClient."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from gatekeeper.config.settings import get_settings
from gatekeeper.main import app
from gatekeeper.observability.metrics import MetricsCollector


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def app_with_overrides(task_repository, audit_repository, metrics):
    """App with repositories and metrics overridden; audit writes go inline."""
    from gatekeeper.api import dependencies

    app.dependency_overrides[dependencies.get_task_repository] = lambda: task_repository
    app.dependency_overrides[dependencies.get_audit_repository] = lambda: audit_repository
    app.dependency_overrides[dependencies.get_audit_queue] = lambda: None
    app.dependency_overrides[dependencies.get_metrics] = lambda: metrics
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client for testing; uses overridden app."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Authorization header for a principal, signed with the configured secret."""
    settings = get_settings()

    def _headers(principal, expires_in=timedelta(minutes=15)):
        claims = {**principal.to_claims(), "exp": datetime.now(timezone.utc) + expires_in}
        token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        return {"Authorization": f"Bearer {token}"}

    return _headers
