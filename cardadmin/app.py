"""
FastAPI application entry point for the card admin service.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cardadmin.config import Settings, get_settings
from cardadmin.db import CardStore
from cardadmin.dependencies import init_dependencies
from cardadmin.errors import (
    AuthenticationError,
    CardValidationError,
    ConfigurationError,
    NotFoundError,
    SessionStoreError,
    StorageError,
)
from cardadmin.routes import auth_router, cards_router
from cardadmin.sessions import SessionStore

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthenticationError)
    async def _auth_error(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"message": exc.message})

    @app.exception_handler(ConfigurationError)
    async def _config_error(request: Request, exc: ConfigurationError):
        return JSONResponse(status_code=500, content={"message": exc.message})

    @app.exception_handler(CardValidationError)
    async def _validation_error(request: Request, exc: CardValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "message": exc.message,
                "errors": [err.as_dict() for err in exc.errors],
            },
        )

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": exc.message})

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError):
        # The cause was already logged by the store; keep backend detail internal.
        logger.error("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content={"message": "Internal server error"}
        )

    @app.exception_handler(SessionStoreError)
    async def _session_store_error(request: Request, exc: SessionStoreError):
        logger.error("Session store failure: %s", exc.message)
        return JSONResponse(status_code=500, content={"message": "Could not log out"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    card_store: Optional[CardStore] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Card Admin", version="0.1.0")
    init_dependencies(
        app, settings, card_store=card_store, session_store=session_store
    )
    _register_error_handlers(app)
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(cards_router, prefix=settings.api_prefix)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy", "service": "cardadmin", "version": "0.1.0"}

    return app
