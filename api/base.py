"""Unified API response format and error codes."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    fields: dict[str, list[str]] | None = Field(
        None, description="Per-field messages for validation failures"
    )
    retryable: bool = Field(False, description="Whether the same request may succeed if retried")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")
    warnings: list[str] = Field(default_factory=list, description="Non-blocking flags, e.g. OVERPAYMENT")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def success_response(data: Any, warnings: list[str] | None = None) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        data=data,
        error=None,
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=str(uuid4()),
            warnings=list(warnings or []),
        ),
    )


def error_response(
    code: str,
    message: str,
    fields: dict[str, list[str]] | None = None,
    retryable: bool = False,
) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message, fields=fields, retryable=retryable),
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=str(uuid4()),
        ),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Ledger rule failures pass their own code through (REFUND_EXCEEDS_PAID,
    EXCEEDS_OUTSTANDING, NEGATIVE_AMOUNT).
    """

    # Authentication
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Reservation Lifecycle
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Concurrency
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # Documents
    RENDER_ERROR = "RENDER_ERROR"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
