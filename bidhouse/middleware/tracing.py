"""
Request tracing middleware
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from bidhouse.core.logging_config import generate_trace_id, set_trace_id
from bidhouse.core.metrics import http_request_duration_seconds, http_requests_total

logger = logging.getLogger(__name__)


def _endpoint_label(request: Request) -> str:
    # Route template keeps label cardinality bounded (no raw auction ids)
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class TracingMiddleware(BaseHTTPMiddleware):
    """Adds a trace ID to every request and records HTTP metrics"""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-ID") or generate_trace_id()
        set_trace_id(trace_id)

        start_time = time.time()
        client_ip = request.client.host if request.client else None

        logger.debug(
            f"Request started: {request.method} {request.url.path}",
            extra={"method": request.method, "path": request.url.path, "client_ip": client_ip},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            http_requests_total.labels(
                method=request.method, endpoint=_endpoint_label(request), status="500"
            ).inc()
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round(duration * 1000, 2),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        endpoint = _endpoint_label(request)
        http_requests_total.labels(
            method=request.method, endpoint=endpoint, status=str(response.status_code)
        ).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            },
        )

        response.headers["X-Trace-ID"] = trace_id
        return response
