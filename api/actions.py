"""POST /api/actions: unified mutation endpoint."""

from typing import Any, NamedTuple
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.errors import unwrap
from core.models import ReservationCreate, ReservationDatesUpdate
from core.money import Money


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


class ActionResult(NamedTuple):
    """Handler payload plus non-blocking warnings for the response meta."""
    data: Any
    warnings: list[str]


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "reservation": ReservationHandler(services["reservation"]),
        "ledger": LedgerHandler(services["ledger"]),
    }

    @router.post("/actions")
    def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        if isinstance(result, ActionResult):
            return success_response(result.data, result.warnings).model_dump(mode="json")
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


def _id(data: dict, key: str = "id") -> UUID:
    if key not in data:
        raise ValueError(f"'{key}' is required")
    return UUID(str(data[key]))


class ReservationHandler:
    ALLOWED_ACTIONS = {
        "open", "confirm", "complete", "cancel",
        "mark_no_show", "mark_modified", "revalidate", "update_dates",
    }

    def __init__(self, service):
        self.service = service

    def _handle_open(self, data: dict):
        reservation = self.service.open(ReservationCreate(**data))
        return reservation.model_dump(mode="json")

    def _handle_confirm(self, data: dict):
        return self.service.confirm(_id(data)).model_dump(mode="json")

    def _handle_complete(self, data: dict):
        return self.service.complete(_id(data)).model_dump(mode="json")

    def _handle_cancel(self, data: dict):
        return self.service.cancel(_id(data)).model_dump(mode="json")

    def _handle_mark_no_show(self, data: dict):
        return self.service.mark_no_show(_id(data)).model_dump(mode="json")

    def _handle_mark_modified(self, data: dict):
        return self.service.mark_modified(_id(data)).model_dump(mode="json")

    def _handle_revalidate(self, data: dict):
        return self.service.revalidate(_id(data)).model_dump(mode="json")

    def _handle_update_dates(self, data: dict):
        reservation_id = _id(data)
        reservation = self.service.update_dates(
            reservation_id,
            ReservationDatesUpdate(check_in=data.get("check_in"), check_out=data.get("check_out")),
        )
        return reservation.model_dump(mode="json")


class LedgerHandler:
    """
    Amounts are sent either as integer minor units ("amount_cents") or as a
    decimal string with its currency ("amount": "400.00", "currency": "AED").
    """

    ALLOWED_ACTIONS = {
        "record_payment", "record_refund", "add_adjustment",
        "change_price", "mark_refund_pending", "clear_refund_pending",
    }

    def __init__(self, service):
        self.service = service

    @staticmethod
    def _amount(data: dict, name: str = "amount") -> Money | int:
        cents_key = f"{name}_cents"
        if cents_key in data:
            return data[cents_key]
        if name in data:
            if "currency" not in data:
                raise ValueError(f"'currency' is required with '{name}'")
            try:
                return Money.from_major_units(str(data[name]), data["currency"])
            except OverflowError:
                raise ValueError(f"'{name}' is too large")
        raise ValueError(f"'{cents_key}' or '{name}' is required")

    @staticmethod
    def _entry_result(result) -> ActionResult:
        entry = unwrap(result)
        return ActionResult(entry.model_dump(mode="json"), result.warnings)

    def _handle_record_payment(self, data: dict):
        return self._entry_result(self.service.record_payment(
            _id(data, "reservation_id"),
            self._amount(data),
            data.get("method"),
            reference=data.get("reference"),
            description=data.get("description"),
            is_deposit=bool(data.get("is_deposit", False)),
        ))

    def _handle_record_refund(self, data: dict):
        return self._entry_result(self.service.record_refund(
            _id(data, "reservation_id"),
            self._amount(data),
            data.get("method"),
            reference=data.get("reference"),
            description=data.get("description"),
        ))

    def _handle_add_adjustment(self, data: dict):
        return self._entry_result(self.service.add_adjustment(
            _id(data, "reservation_id"),
            data.get("adjustment_type"),
            self._amount(data),
            description=data.get("description"),
            reason=data.get("reason"),
        ))

    def _handle_change_price(self, data: dict):
        return self._entry_result(self.service.change_price(
            _id(data, "reservation_id"),
            self._amount(data, "new_amount"),
            reason=data.get("reason"),
        ))

    def _handle_mark_refund_pending(self, data: dict):
        snapshot = unwrap(self.service.mark_refund_pending(_id(data, "reservation_id")))
        return snapshot.model_dump(mode="json")

    def _handle_clear_refund_pending(self, data: dict):
        snapshot = unwrap(self.service.clear_refund_pending(_id(data, "reservation_id")))
        return snapshot.model_dump(mode="json")
