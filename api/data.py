"""GET /api/data: unified read endpoint."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from api.errors import unwrap
from core.money import Money
from core.pricing import income_distribution, price_breakdown


VALID_TYPES = {"ledger", "entries", "reservations", "pricing", "history"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    reservation_svc = services["reservation"]
    ledger_svc = services["ledger"]
    audit = services["audit"]
    config = services["config"]

    @router.get("/data")
    def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        filter: str | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "reservations":
            reservations = reservation_svc.list_by_status(filter or None, limit)
            return success_response(
                [r.model_dump(mode="json") for r in reservations]
            ).model_dump(mode="json")

        if id is None:
            raise ValueError(f"'id' query parameter is required for type '{type}'")
        reservation_id = UUID(id)

        if type == "ledger":
            snapshot = unwrap(ledger_svc.get_snapshot(reservation_id))
            return success_response(snapshot.model_dump(mode="json")).model_dump(mode="json")

        if type == "entries":
            entries = unwrap(ledger_svc.list_entries(reservation_id))
            return success_response(
                [e.model_dump(mode="json") for e in entries]
            ).model_dump(mode="json")

        if type == "pricing":
            return _handle_pricing(reservation_svc, config, reservation_id)

        return _handle_history(ledger_svc, audit, reservation_id)

    return router


def _handle_pricing(reservation_svc, config, reservation_id: UUID) -> dict:
    reservation = reservation_svc.get_by_id(reservation_id)
    if reservation is None:
        raise ValueError(f"Reservation {reservation_id} not found")

    breakdown = price_breakdown(
        reservation.total_amount,
        reservation.nights,
        Money(config.cleaning_fee_cents, reservation.currency),
        config.tax_rate_bps,
    )
    distribution = income_distribution(reservation.total_amount)
    return success_response({
        "breakdown": breakdown.to_dict(),
        "distribution": distribution.to_dict(),
    }).model_dump(mode="json")


def _handle_history(ledger_svc, audit, reservation_id: UUID) -> dict:
    entries = unwrap(ledger_svc.list_entries(reservation_id))
    rows = audit.get_reservation_history(reservation_id, [e.id for e in entries])
    return success_response(rows).model_dump(mode="json")
