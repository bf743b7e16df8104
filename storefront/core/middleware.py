"""Request context middleware.

Assigns a request id to every request, picks up tracing headers, and logs
request start and completion with timing.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from storefront.core.context import (
    clear_context,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from storefront.core.logging import get_logger


logger = get_logger(__name__)


def extract_traceparent(traceparent: str | None) -> str | None:
    """Return the trace id part of a W3C ``traceparent`` header.

    Format: ``{version}-{trace-id}-{parent-id}-{trace-flags}``.
    """
    if not traceparent:
        return None
    parts = traceparent.split("-")
    if len(parts) >= 2:
        return parts[1]
    return None


def client_ip(request: Request) -> str | None:
    """Client address, honoring reverse-proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request/trace ids to the logging context for each request."""

    REQUEST_ID_HEADER = "X-Request-ID"
    TRACE_ID_HEADER = "X-Trace-ID"
    CORRELATION_ID_HEADER = "X-Correlation-ID"
    TRACEPARENT_HEADER = "traceparent"
    B3_TRACE_HEADER = "X-B3-TraceId"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = exclude_paths or ["/health"]

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start_time = time.perf_counter()

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        request.state.request_id = request_id

        trace_id = (
            request.headers.get(self.TRACE_ID_HEADER)
            or request.headers.get(self.B3_TRACE_HEADER)
            or extract_traceparent(request.headers.get(self.TRACEPARENT_HEADER))
        )
        if trace_id:
            set_trace_id(trace_id)

        correlation_id = request.headers.get(self.CORRELATION_ID_HEADER)
        if correlation_id:
            set_correlation_id(correlation_id)

        should_log = self.log_requests and not any(
            request.url.path.startswith(path) for path in self.exclude_paths
        )
        if should_log:
            logger.info(
                "request_started",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) if request.query_params else None,
                client_ip=client_ip(request),
            )

        try:
            response = await call_next(request)
            if should_log:
                log_method = (
                    logger.warning if response.status_code >= 400 else logger.info
                )
                log_method(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise
        finally:
            clear_context()
