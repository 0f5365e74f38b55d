"""Request context middleware: X-Request-Id plus one access log line per request."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"

logger = structlog.get_logger("cineverse.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Bind request_id / method / path to the structlog context for the whole
    request, echo the id back, and log the outcome.

    The auth dependencies leave the caller on request.state.user_id; it is
    added to the access line so every request can be traced to a user.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        # Health checks are not access-logged
        if request.url.path != "/api/health":
            logger.info(
                "request_finished",
                status=response.status_code,
                duration_ms=duration_ms,
                user_id=getattr(request.state, "user_id", None),
            )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
