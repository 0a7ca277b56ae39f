from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("dealcard.api.request")

REQUEST_ID_HEADER = "X-Request-Id"


def _route_template(request: Request) -> str:
    # Template path, e.g. "/api/kids/{kid_id}/pin".
    path = getattr(request.scope.get("route"), "path", None)
    return path if isinstance(path, str) else request.url.path


def _request_context(request: Request, *, status_code: int, started: float) -> dict[str, Any]:
    return {
        "request_id": request.state.request_id,
        "route": _route_template(request),
        "method": request.method,
        "status_code": status_code,
        "execution_time_ms": round((perf_counter() - started) * 1000, 2),
        "user_id": getattr(request.state, "user_id", None),
        "kid_id": getattr(request.state, "kid_id", None),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request.failed", extra=_request_context(request, status_code=500, started=started))
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request.completed",
            extra=_request_context(request, status_code=response.status_code, started=started),
        )
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response
