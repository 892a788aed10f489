"""Shared test fixtures for the reservation ledger test suite."""

import pytest
from datetime import date
from uuid import UUID, uuid4
from pathlib import Path
from unittest.mock import Mock

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from utils.user_context import user_context, clear_current_user_id


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

# Front-desk staff member recording payments
TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Second staff member for attribution tests
TEST_USER_B_ID = UUID("00000000-0000-0000-0000-000000000002")


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user_id()
    yield
    clear_current_user_id()


@pytest.fixture
def test_user_id() -> UUID:
    """The primary test user's ID."""
    return TEST_USER_ID


@pytest.fixture
def test_user_b_id() -> UUID:
    """The secondary test user's ID."""
    return TEST_USER_B_ID


@pytest.fixture
def as_test_user(test_user_id):
    """Run the test as the primary test user."""
    with user_context(test_user_id):
        yield test_user_id


@pytest.fixture
def as_test_user_b(test_user_b_id):
    """Run the test as the secondary test user."""
    with user_context(test_user_b_id):
        yield test_user_b_id


# =============================================================================
# LEDGER FIXTURES
# =============================================================================


@pytest.fixture
def config():
    from core.config import LedgerConfig
    return LedgerConfig(default_currency="USD", lock_timeout_seconds=0.5)


@pytest.fixture
def repository():
    from core.repositories import InMemoryLedgerRepository
    return InMemoryLedgerRepository()


@pytest.fixture
def locks(config):
    from core.locks import LocalLockManager
    return LocalLockManager(timeout_seconds=config.lock_timeout_seconds)


@pytest.fixture
def audit():
    """Audit logger stand-in; audit SQL is covered in test_audit.py."""
    from core.audit import AuditLogger
    return Mock(spec=AuditLogger)


@pytest.fixture
def event_bus():
    from core.event_bus import EventBus
    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every event published during the test, in order."""
    events = []
    event_bus.subscribe("RentalEvent", events.append)
    return events


@pytest.fixture
def reservation_service(repository, locks, audit, event_bus, config):
    from core.services.reservation_service import ReservationService
    return ReservationService(repository, locks, audit, event_bus, config, today=lambda: date(2025, 3, 1))


@pytest.fixture
def ledger_service(repository, locks, audit, event_bus, config):
    from core.services.ledger_service import LedgerService
    return LedgerService(repository, locks, audit, event_bus, config)


@pytest.fixture
def reservation(as_test_user, reservation_service):
    """$1,000.00 stay, 5 nights, PENDING, no entries."""
    from core.models import ReservationCreate
    return reservation_service.open(ReservationCreate(
        property_id=uuid4(),
        guest_id=uuid4(),
        guest_name="Layla Haddad",
        property_name="Marina View 2BR",
        check_in=date(2025, 3, 10),
        check_out=date(2025, 3, 15),
        total_amount_cents=100000,
        currency="USD",
    ))
