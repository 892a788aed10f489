"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import ConcurrencyError, LedgerError, RenderError
from core.reservation_status import StatusTransitionError
from core.results import LedgerResult

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"RESERVATION_NOT_FOUND"}


class LedgerActionFailed(Exception):
    """A ledger operation returned a failed LedgerResult."""

    def __init__(self, result: LedgerResult):
        self.result = result
        super().__init__(result.error)


def unwrap(result: LedgerResult):
    """
    Return the result payload, or raise LedgerActionFailed for the
    error handler to turn into an HTTP error.
    """
    if not result.success:
        raise LedgerActionFailed(result)
    return result.data


def _status_for(error_code: str | None) -> int:
    if error_code in NOT_FOUND_CODES:
        return 404
    if error_code == ConcurrencyError.code:
        return 409
    return 400


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(LedgerActionFailed)
    async def ledger_failure_handler(request: Request, exc: LedgerActionFailed):
        result = exc.result
        return JSONResponse(
            status_code=_status_for(result.error_code),
            content=error_response(
                result.error_code or ErrorCodes.INVALID_REQUEST,
                result.error or "Request failed",
                fields=result.errors,
                retryable=result.retryable,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        status = 409 if isinstance(exc, ConcurrencyError) else 400
        if isinstance(exc, RenderError):
            logger.error(f"Document render failed: {exc.message}")
        return JSONResponse(
            status_code=status,
            content=error_response(
                exc.code, exc.message, retryable=exc.retryable
            ).model_dump(mode="json"),
        )

    @app.exception_handler(StatusTransitionError)
    async def transition_error_handler(request: Request, exc: StatusTransitionError):
        return JSONResponse(
            status_code=409,
            content=error_response(
                ErrorCodes.INVALID_STATUS_TRANSITION, str(exc)
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return JSONResponse(
                status_code=404,
                content=error_response(ErrorCodes.NOT_FOUND, message).model_dump(mode="json"),
            )
        return JSONResponse(
            status_code=400,
            content=error_response(ErrorCodes.INVALID_REQUEST, message).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                str(exc.errors()),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
            ).model_dump(mode="json"),
        )
