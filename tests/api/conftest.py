"""API test fixtures: TestClient over the in-memory ledger services."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.documents import DocumentRenderer


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services(reservation_service, ledger_service, audit, config):
    return {
        "reservation": reservation_service,
        "ledger": ledger_service,
        "renderer": DocumentRenderer(config),
        "audit": audit,
        "config": config,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """Full app: user context middleware, error handlers, all routers."""
    return create_app(services)


@pytest.fixture
def client(app, test_user_id):
    """Client acting as the primary test user."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers["X-User-ID"] = str(test_user_id)
    return c


@pytest.fixture
def unauthed_client(app):
    """Client without the X-User-ID header."""
    return TestClient(app, raise_server_exceptions=False)
