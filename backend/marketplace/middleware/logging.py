"""
RR Nagar Backend — Request Logging Middleware
===============================================

What:  One access-log line per request: method, path, status, duration,
       request ID, client IP and the session's identity kind.
How:   Level follows the status class (5xx ERROR, 4xx WARNING, else INFO).
       /health is not logged; monitors poll it constantly.

Request bodies are never logged (passwords, images).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from marketplace.identity import Identity
from marketplace.middleware.request_id import request_id_var

logger = logging.getLogger("marketplace.access")

QUIET_PATHS = {"/health"}


def _identity_role(request: Request) -> str:
    # Session is only present when SessionMiddleware wraps this middleware
    if "session" not in request.scope:
        return "anonymous"
    return Identity.from_session(request.session).role


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        role = _identity_role(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s as %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            role,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "identity": role,
            },
        )
        return response
