# studio_scheduler/core/middleware.py
"""Custom middleware for request handling"""
import uuid
import time
import logging
from contextvars import ContextVar

from starlette.requests import Request

logger = logging.getLogger(__name__)

# Read by utils.my_logging.CorrelationIdFilter so service logs carry the request id
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    token = correlation_id_var.set(correlation_id)

    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)

    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log each request with its status and duration"""
    start_time = time.time()
    client = request.client.host if request.client else "unknown"

    logger.info(f"{request.method} {request.url.path} started (client={client})")

    response = await call_next(request)

    duration_ms = round((time.time() - start_time) * 1000, 2)
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {response.status_code} in {duration_ms}ms"
    )

    return response
