from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from product_api.api import health, routes
from product_api.api.problems import (
    http_exception_handler,
    product_validation_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from product_api.core.config import Settings, get_settings
from product_api.core.logging import configure_logging, get_logger
from product_api.errors import ProductValidationError
from product_api.middlewares.request_id import RequestIdMiddleware
from product_api.middlewares.security_headers import SecurityHeadersMiddleware
from product_api.repositories import ProductStore, build_product_store

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[ProductStore] = None) -> FastAPI:
    """
    Build the product-api application.

    With no store given, one is built from settings.database_url when the
    app starts and disposed of on shutdown. The database is initialized
    (tables, indexes, seed rows) on startup either way; a failure there
    aborts startup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = getattr(app.state, "store", None) is None
        if owns_store:
            app.state.store = build_product_store(settings.database_url, logger=get_logger("product_api.store"))

        logger.info("Initializing database...")
        try:
            app.state.store.initialize()
        except Exception:
            logger.exception("Failed to initialize database")
            raise
        logger.info("Database initialized successfully")

        logger.info("%s started env=%s", settings.app_name, settings.environment)
        yield

        if owns_store:
            app.state.store.dispose()
            app.state.store = None

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    on_unhandled = unhandled_exception_handler(settings)

    # Innermost first: errors become a 500 inside RequestIdMiddleware so the
    # layers added after it still apply their headers.
    app.add_middleware(RequestIdMiddleware, on_error=on_unhandled)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-Id"],
        expose_headers=["Location", "X-Request-Id"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ProductValidationError, product_validation_handler(settings))
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, on_unhandled)

    app.include_router(health.router)
    app.include_router(routes.router)
    return app


app = create_app()
