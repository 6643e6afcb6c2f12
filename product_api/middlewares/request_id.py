from __future__ import annotations

from typing import Awaitable, Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from product_api.core.logging import get_logger

logger = get_logger(__name__)

ErrorHandler = Callable[[Request, Exception], Awaitable[Response]]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id and echoes it in ``X-Request-Id``.

    When ``on_error`` is given, unhandled exceptions are turned into a response
    here, so outer middleware (security headers, CORS) still decorates the 500.
    """

    def __init__(self, app: ASGIApp, on_error: Optional[ErrorHandler] = None) -> None:
        super().__init__(app)
        self._on_error = on_error

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id

        logger.info("request start %s %s requestId=%s", request.method, request.url.path, request_id)

        try:
            response: Response = await call_next(request)
        except Exception as exc:
            if self._on_error is None:
                raise
            response = await self._on_error(request, exc)
        response.headers["X-Request-Id"] = request_id

        logger.info(
            "request end %s %s status=%s requestId=%s",
            request.method,
            request.url.path,
            response.status_code,
            request_id,
        )
        return response
