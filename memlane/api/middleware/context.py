"""Request context middleware for observability."""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

from memlane.observability.logging import get_logger
from memlane.observability.metrics import REQUEST_COUNT, REQUEST_LATENCY
from memlane.observability.tracing import get_current_trace_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to structlog contextvars and records metrics.

    An incoming X-Request-ID header is reused, otherwise a new ID is
    generated; either way it is echoed on the response.
    """

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """Process request and bind context."""
        clear_contextvars()

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_contextvars(request_id=request_id, trace_id=get_current_trace_id())

        logger.debug(
            "request_started",
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)  # type: ignore[misc]
            status_code = response.status_code
        finally:
            endpoint = self._endpoint(request)
            REQUEST_COUNT.labels(endpoint=endpoint, status=str(status_code)).inc()
            REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start)

        logger.debug(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response  # type: ignore[no-any-return]

    @staticmethod
    def _endpoint(request: Request) -> str:
        """Route template, e.g. /review/{session_id}."""
        route = request.scope.get("route")
        return getattr(route, "path", "unmatched")
