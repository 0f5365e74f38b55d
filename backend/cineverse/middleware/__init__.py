"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cineverse.core.config import Settings
from cineverse.middleware.error_handler import setup_error_handlers
from cineverse.middleware.logging import setup_logging
from cineverse.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and HTTP middleware.

    Starlette runs middleware in reverse-add order; CORS is added last so it
    also wraps error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app, settings)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
