"""
FastAPI application assembly.

create_app() takes ready-made services so tests can pass in-memory ones.
create_production_app() wires PostgreSQL, Valkey and the notification
gateway from Vault:

    uvicorn api.app:create_production_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.actions import create_actions_router
from api.base import success_response
from api.data import create_data_router
from api.documents import create_documents_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware, UserContextMiddleware
from core.config import LedgerConfig

logger = logging.getLogger(__name__)


def create_app(services: dict, lifespan=None) -> FastAPI:
    """
    Build the app around a services dict with keys: reservation, ledger,
    renderer, audit, config.
    """
    app = FastAPI(title="Reservation Ledger", lifespan=lifespan)
    app.add_middleware(UserContextMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")
    app.include_router(create_documents_router(services), prefix="/api")

    return app


def build_services(config: LedgerConfig | None = None) -> dict:
    """Production services backed by PostgreSQL, Valkey and the gateway."""
    from clients.notification_client import NotificationGatewayClient
    from clients.postgres_client import PostgresClient
    from clients.valkey_client import ValkeyClient
    from clients.vault_client import get_database_url, get_notification_config, get_valkey_url
    from core.audit import AuditLogger
    from core.documents import DocumentRenderer
    from core.event_bus import EventBus
    from core.handlers.ledger_notification_handler import register_ledger_notifications
    from core.locks import ValkeyLockManager
    from core.repositories import PostgresLedgerRepository
    from core.services.ledger_service import LedgerService
    from core.services.reservation_service import ReservationService

    config = config or LedgerConfig()

    postgres = PostgresClient(get_database_url())
    locks = ValkeyLockManager(
        ValkeyClient(get_valkey_url()),
        timeout_seconds=config.lock_timeout_seconds,
        ttl_seconds=config.lock_ttl_seconds,
    )
    repository = PostgresLedgerRepository(postgres)
    audit = AuditLogger(postgres)
    event_bus = EventBus()
    register_ledger_notifications(
        event_bus,
        NotificationGatewayClient(**get_notification_config()),
        config.default_locale,
    )

    return {
        "reservation": ReservationService(repository, locks, audit, event_bus, config),
        "ledger": LedgerService(repository, locks, audit, event_bus, config),
        "renderer": DocumentRenderer(config),
        "audit": audit,
        "config": config,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close pooled PostgreSQL connections when the server stops."""
    from clients.postgres_client import PostgresClient

    try:
        yield
    finally:
        PostgresClient.close_all_pools()
        logger.info("Connection pools closed")


def create_production_app() -> FastAPI:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(build_services(), lifespan=lifespan)
    logger.info("Reservation ledger API ready")
    return app
