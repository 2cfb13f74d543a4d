"""
Observability middleware and logging setup.

Adds correlation IDs and structured logging context to requests. Each request
log line carries the matched route template, the acting user and whichever
ledger account or rate party the request addressed through its URL.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.haulbook.core.config import settings

# Configure structured logger
logger = logging.getLogger("haulbook")

# URL parameters that identify what a request touched
SUBJECT_PARAMS = ("book", "account_key", "rate_party_type", "rate_party_id", "version_id", "transaction_id")


def configure_logging(level: str = None) -> None:
    """Attach a stream handler to the haulbook logger tree (idempotent)."""
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        ))
        logger.addHandler(handler)


def request_subject(request: Request) -> dict:
    """Domain identifiers from the path (after routing) and the query string."""
    params = {**request.query_params, **request.scope.get("path_params", {})}
    return {name: str(params[name]) for name in SUBJECT_PARAMS if name in params}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = (time.perf_counter() - start_time) * 1000  # ms
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(process_time)

        # Router fills in the matched route on the shared scope
        route = request.scope.get("route")
        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "route": getattr(route, "path", request.url.path),
            "status_code": response.status_code,
            "duration_ms": round(process_time, 2),
            "actor": request.headers.get("X-Actor-Username"),
            "subject": request_subject(request),
        }
        message = "%s %s -> %d %s"
        args = (request.method, request.url.path, response.status_code, log_data["subject"] or "")

        if response.status_code >= 500:
            logger.error(message, *args, extra=log_data)
        elif response.status_code >= 400:
            logger.warning(message, *args, extra=log_data)
        else:
            logger.info(message, *args, extra=log_data)

        return response
