"""
Request logging middleware with correlation ID and Prometheus metrics
"""
import time
import uuid
from fastapi import Request, Response, FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from lib.logging import get_logger, log_json
from lib.prometheus_metrics import (
    http_requests_total,
    http_request_duration_seconds,
    update_uptime
)

logger = get_logger("http")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate or extract request ID
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        duration_seconds = time.time() - start_time

        response.headers["X-Request-ID"] = request_id

        # Label by matched route so unknown paths don't explode cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        method = request.method

        # Don't track metrics endpoint itself
        if endpoint != "/metrics":
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=str(response.status_code)
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration_seconds)

        update_uptime()

        log_json(logger, {
            "method": method,
            "path": request.url.path,
            "status": response.status_code,
            "dur_ms": round(duration_seconds * 1000, 2),
            "request_id": request_id
        })

        return response


def install_logging(app: FastAPI):
    """Install the request logging middleware on the app"""
    app.add_middleware(RequestLoggingMiddleware)
