"""
Academia API — Access Log Middleware
=====================================

What:  One access log line per /estudiantes request.
How:   Logs the matched route template (`/estudiantes/{student_id}`) rather
       than the raw URL, so every student id folds into one line shape, and
       the raw id travels in `extra` for searching. A request that escapes
       the exception handlers is logged as 500 before the error propagates.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies are never logged (they carry student emails).
"""

import logging
import time
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from academia.middleware.request_id import request_id_var

logger = logging.getLogger("academia.access")

# Polled every few seconds by container runtimes
_QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _route_of(request: Request) -> str:
    """Route template the router matched, or the raw path for unknown URLs."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _access_fields(request: Request, status: int, started: float) -> Dict[str, Any]:
    fields = {
        "request_id": request_id_var.get(""),
        "method": request.method,
        "route": _route_of(request),
        "status": status,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        "client_ip": request.client.host if request.client else "unknown",
    }
    student_id = request.path_params.get("student_id")
    if student_id is not None:
        fields["student_id"] = student_id
    return fields


def _log_access(fields: Dict[str, Any]) -> None:
    logger.log(
        _level_for(fields["status"]),
        "%s %s → %d in %.1fms [%s]",
        fields["method"],
        fields["route"],
        fields["status"],
        fields["duration_ms"],
        fields["request_id"],
        extra=fields,
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log for the student API; /health stays silent."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _log_access(_access_fields(request, 500, started))
            raise

        _log_access(_access_fields(request, response.status_code, started))
        return response
