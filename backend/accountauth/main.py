from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accountauth.core.config import Settings, settings as default_settings
from accountauth.core.deps import build_auth_service
from accountauth.core.exceptions import AccountAuthException, InternalError
from accountauth.core.logging import setup_logging
from accountauth.routers import auth
from accountauth.services.auth import AuthService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, service: AuthService | None = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings)
    settings.validate_runtime_security()

    app = FastAPI(title=settings.APP_NAME)
    app.state.auth_service = service or build_auth_service(settings, create_tables=True)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

    @app.exception_handler(AccountAuthException)
    async def handle_account_exception(_: Request, exc: AccountAuthException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    return app
