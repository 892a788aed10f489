"""Request-scoped middleware for API requests."""

from uuid import UUID, uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from utils.user_context import reset_current_user_id, set_current_user_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a unique request ID to every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class UserContextMiddleware(BaseHTTPMiddleware):
    """
    Sets the acting user from the X-User-ID header.

    Authentication happens upstream at the gateway, which forwards the
    verified user id. Requests without a valid id are rejected so every
    ledger write is attributable. Public paths pass through untouched.
    """

    HEADER = "X-User-ID"

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def _is_public_path(self, path: str) -> bool:
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if self._is_public_path(request.url.path):
            return await call_next(request)

        raw = request.headers.get(self.HEADER)
        try:
            user_id = UUID(raw) if raw else None
        except ValueError:
            user_id = None

        if user_id is None:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        token = set_current_user_id(user_id)
        request.state.user_id = user_id
        try:
            return await call_next(request)
        finally:
            reset_current_user_id(token)
