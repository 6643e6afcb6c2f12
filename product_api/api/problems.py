from __future__ import annotations

import traceback
from http import HTTPStatus
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from product_api.core.config import Settings
from product_api.core.logging import get_logger
from product_api.errors import ProductValidationError
from product_api.middlewares.security_headers import SECURITY_HEADERS

logger = get_logger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
VALIDATION_TITLE = "One or more validation errors occurred."
INTERNAL_ERROR_TITLE = "An error occurred while processing your request."

# Request sections FastAPI prefixes onto error locations.
_LOC_SECTIONS = {"body", "path", "query", "header", "cookie"}

# (field, pydantic error type) -> message shown to clients.
FIELD_MESSAGES = {
    ("name", "missing"): "Product name is required",
    ("name", "string_type"): "Product name is required",
    ("name", "string_too_long"): "Product name cannot exceed 100 characters",
    ("price", "missing"): "Product price is required",
    ("price", "greater_than"): "Product price must be greater than 0",
    ("price", "less_than_equal"): "Product price cannot exceed $999,999.99",
    ("price", "decimal_max_places"): "Product price cannot have more than 2 decimal places",
    ("description", "string_too_long"): "Product description cannot exceed 500 characters",
    ("productId", "greater_than"): "Product ID must be greater than 0",
    ("productId", "less_than_equal"): "Product ID is out of range",
    ("productId", "int_parsing"): "Product ID must be an integer",
}


def problem(status_code: int, title: Optional[str] = None, headers: Optional[dict] = None, **extra: Any) -> JSONResponse:
    """RFC 7807 style body: type/title/status plus any extra members."""
    content: dict[str, Any] = {
        "type": f"https://httpstatuses.io/{status_code}",
        "title": title or HTTPStatus(status_code).phrase,
        "status": status_code,
    }
    content.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=content, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


def validation_problem(errors: dict[str, list[str]], **extra: Any) -> JSONResponse:
    return problem(400, VALIDATION_TITLE, errors=errors, **extra)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in _LOC_SECTIONS]
    return to_camel(parts[-1]) if parts else "body"


def _message(field: str, err: dict) -> str:
    known = FIELD_MESSAGES.get((field, err.get("type")))
    if known:
        return known
    if err.get("type") == "value_error":
        # Messages raised by our own validators.
        return str(err["ctx"]["error"]) if "error" in err.get("ctx", {}) else err["msg"]
    return err.get("msg", "Invalid value")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = _field_name(tuple(err.get("loc", ())))
        errors.setdefault(field, []).append(_message(field, err))

    logger.warning("Validation failed for %s %s: %s", request.method, request.url.path, errors)
    return validation_problem(errors)


def product_validation_handler(settings: Settings):
    async def _handler(request: Request, exc: ProductValidationError) -> JSONResponse:
        field = exc.field or "product"
        detail = exc.message if settings.is_development else None
        return validation_problem({field: ["Value rejected by a database constraint"]}, detail=detail)

    return _handler


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return problem(exc.status_code, detail=exc.detail, headers=getattr(exc, "headers", None))


def unhandled_exception_handler(settings: Settings):
    """
    Single catch-all for errors nothing else translated.

    Internal details only leave the process in development mode. The response
    carries the request id and security headers itself, since it may be built
    outside the middleware that normally adds them.
    """

    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled exception on %s %s requestId=%s", request.method, request.url.path, request_id)

        headers = dict(SECURITY_HEADERS)
        if request_id:
            headers["X-Request-Id"] = request_id

        extra: dict[str, Any] = {"requestId": request_id}
        if settings.is_development:
            extra["detail"] = f"{type(exc).__name__}: {exc}"
            extra["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return problem(500, INTERNAL_ERROR_TITLE, headers=headers, **extra)

    return _handler
