"""API test fixtures: the real app over an in-memory store, with mocked auth."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from auth.config import AuthConfig
from auth.service import AuthService
from auth.session import SessionManager
from auth.types import Session
from core.config import InvoiceConfig
from utils.timezone import now_utc

SESSION_TOKEN = "test-session-token"


@pytest.fixture
def operator_session() -> Session:
    now = now_utc()
    return Session(
        token=SESSION_TOKEN,
        username="admin",
        created_at=now,
        expires_at=now + timedelta(hours=12),
        last_activity_at=now,
    )


@pytest.fixture
def session_manager(operator_session):
    manager = Mock(spec=SessionManager)
    manager.validate_session.return_value = operator_session
    return manager


@pytest.fixture
def auth_service():
    return Mock(spec=AuthService)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(cookie_secure=False)


@pytest.fixture
def app(store, session_manager, auth_service, auth_config):
    return create_app(
        invoice_config=InvoiceConfig(numbering_policy="sequential"),
        auth_config=auth_config,
        store=store,
        session_manager=session_manager,
        auth_service=auth_service,
    )


@pytest.fixture
def client(app):
    """Authenticated client: carries the session cookie on every request."""
    return TestClient(
        app,
        cookies={"session_token": SESSION_TOKEN},
        raise_server_exceptions=False,
    )


@pytest.fixture
def anon_client(app):
    return TestClient(app, raise_server_exceptions=False)
