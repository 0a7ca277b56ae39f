from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("dealcard.api.errors")

ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMIT",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


class DealCardError(Exception):
    """Base for failures that are the server's fault, never the caller's."""


class LedgerWriteError(DealCardError):
    """The transaction insert and balance increment did not commit together."""


class LLMProviderError(DealCardError):
    """The language-model vendor failed or answered with an unexpected shape."""


def error_body(code: str, message: str, details: Any | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return body


def _split_detail(status_code: int, detail: Any) -> tuple[str, str, Any | None]:
    """Turn an ``HTTPException.detail`` into (code, message, details).

    Services raise either a plain message string or a mapping that overrides
    the status-derived code, e.g. ``{"code": "LLM_UNAVAILABLE", "message": ...}``.
    """
    code = ERROR_CODES.get(status_code, "HTTP_ERROR")
    if isinstance(detail, str):
        return code, detail, None
    if isinstance(detail, Mapping):
        return (
            detail.get("code") or code,
            detail.get("message") or "Request failed",
            detail.get("details"),
        )
    return code, "Request failed", detail


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code, message, details = _split_detail(exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, message, details),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "VALIDATION_ERROR",
            "Invalid input",
            jsonable_encoder(exc.errors(), exclude={"ctx", "url"}),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": request.url.path,
            "reason": type(exc).__name__,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DealCardError, unhandled_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
