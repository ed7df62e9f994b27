"""RFC 7807 Problem Details helpers and FastAPI exception handlers."""
from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .domain_errors import DomainError

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://api.military-assets.local/problems"


def _problem_payload(
    *,
    code: str,
    status: int,
    detail: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    try:
        title = HTTPStatus(status).phrase
    except ValueError:
        title = "Domain Error"

    payload: dict[str, object] = {
        "type": f"{PROBLEM_TYPE_BASE}/{code.lower()}",
        "title": title,
        "status": status,
        "detail": detail,
        "code": code,
        # The dashboard client surfaces `message` verbatim.
        "success": False,
        "message": detail,
    }
    if details is not None:
        payload["details"] = details
    return payload


def build_problem_details_response(exc: DomainError) -> JSONResponse:
    """Render DomainError as RFC 7807 payload with stable domain code."""
    return JSONResponse(
        status_code=exc.http_status,
        content=_problem_payload(
            code=exc.code,
            status=exc.http_status,
            detail=exc.message,
            details=exc.details,
        ),
        media_type="application/problem+json",
    )


def _validation_field_errors(exc: RequestValidationError) -> dict[str, str]:
    fields: dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        key = ".".join(location) or "request"
        fields.setdefault(key, str(error.get("msg", "Invalid value")))
    return fields


async def _handle_domain_error(_: Request, exc: DomainError) -> JSONResponse:
    return build_problem_details_response(exc)


async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    response = build_problem_details_response(
        DomainError(code=code, http_status=exc.status_code, message=str(exc.detail))
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return build_problem_details_response(
        DomainError(
            code="VALIDATION_ERROR",
            http_status=400,
            message="Validation Error",
            details={"errors": _validation_field_errors(exc)},
        )
    )


async def _handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity violation path=%s error=%s", request.url.path, exc.orig)
    return build_problem_details_response(
        DomainError(
            code="UNIQUE_CONSTRAINT_VIOLATION",
            http_status=409,
            message="Record conflicts with an existing record",
        )
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.DEBUG and not settings.is_production else "Internal server error"
    return build_problem_details_response(
        DomainError(code="INTERNAL_ERROR", http_status=500, message=message)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(IntegrityError, _handle_integrity_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
