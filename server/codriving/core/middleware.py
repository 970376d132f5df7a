"""Request correlation, trace context and access-log middleware."""

import re
import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .observability import REQUEST_COUNT, REQUEST_DURATION

logger = structlog.get_logger(__name__)

TRACEPARENT_PATTERN = re.compile(r"^00-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")


def parse_traceparent(traceparent: Optional[str]) -> Optional[dict]:
    """
    Parse a W3C traceparent header.

    Only version 00 is accepted; all-zero trace or parent ids are invalid.
    https://www.w3.org/TR/trace-context/
    """
    if not traceparent:
        return None

    match = TRACEPARENT_PATTERN.match(traceparent)
    if not match:
        return None

    trace_id, parent_id, flags = match.groups()
    if trace_id == "0" * 32 or parent_id == "0" * 16:
        return None

    return {"trace_id": trace_id, "parent_id": parent_id, "flags": flags}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assign a request id and W3C trace context to every request.

    Both are stored on ``request.state``, bound into structlog contextvars for
    the lifetime of the request and echoed back as response headers.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())

        incoming = parse_traceparent(request.headers.get("traceparent"))
        trace_id = incoming["trace_id"] if incoming else uuid.uuid4().hex
        flags = incoming["flags"] if incoming else "01"
        span_id = uuid.uuid4().hex[:16]

        request.state.request_id = request_id
        request.state.trace_context = {
            "trace_id": trace_id,
            "span_id": span_id,
            "parent_span_id": incoming["parent_id"] if incoming else None,
            "flags": flags,
        }

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, trace_id=trace_id)

        response = await call_next(request)

        response.headers[self.header_name] = request_id
        response.headers["traceparent"] = f"00-{trace_id}-{span_id}-{flags}"
        tracestate = request.headers.get("tracestate")
        if tracestate:
            response.headers["tracestate"] = tracestate

        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log each request once it completes and feed the HTTP Prometheus metrics."""

    def __init__(self, app: ASGIApp, skip_paths: Optional[list] = None):
        super().__init__(app)
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        REQUEST_COUNT.labels(
            method=request.method, endpoint=endpoint, status_code=str(response.status_code)
        ).inc()
        REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(duration)

        log = logger.bind(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            client_ip=request.client.host if request.client else "unknown",
        )
        if response.status_code >= 500:
            log.error("request_completed")
        elif response.status_code >= 400:
            log.warning("request_completed")
        else:
            log.info("request_completed")

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        enable_logging: Whether to enable access logging
    """
    # Last added runs first, so the request context wraps the access log
    if enable_logging:
        # Development also logs readiness probes
        skip_paths = ["/health", "/ready", "/metrics", "/favicon.ico"] if settings.is_production else None
        app.add_middleware(AccessLogMiddleware, skip_paths=skip_paths)

    app.add_middleware(RequestContextMiddleware)
