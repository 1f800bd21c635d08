from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from formbuilder.config import get_config
from formbuilder.db.base import get_engine
from formbuilder.db.migrations_runner import apply_migrations
from formbuilder.http.problem import (
    handle_domain_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from formbuilder.http.request_id import RequestIdMiddleware
from formbuilder.logging_setup import configure_logging
from formbuilder.logic.errors import DomainError
from formbuilder.routes import api_router, health_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _apply_startup_migrations() -> None:
    cfg = get_config().database
    if not cfg.auto_apply_migrations:
        logger.info("migrations.startup.skipped")
        return
    applied = apply_migrations(get_engine(), cfg.migrations_dir)
    logger.info("migrations.startup.done applied=%s", len(applied))


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    cfg = get_config()
    app = FastAPI(title="formbuilder", version="0.1.0")

    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors.allow_origins,
        allow_credentials="*" not in cfg.cors.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Request-Id"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(health_router)
    app.include_router(api_router, prefix=API_PREFIX)

    _apply_startup_migrations()
    logger.info("app.created routes=%s", len(app.routes))
    return app


__all__ = ["create_app", "API_PREFIX"]
