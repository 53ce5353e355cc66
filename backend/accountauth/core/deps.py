"""Service assembly and common FastAPI dependencies."""

from __future__ import annotations

import logging
from functools import partial

from fastapi import Depends, Request

from accountauth.core.config import Settings
from accountauth.core.exceptions import AuthenticationRequiredError
from accountauth.core.logging import APP_LOGGER
from accountauth.core.security import PasswordCodec, SessionSigner, TokenGenerator
from accountauth.db.session import build_engine, build_session_factory, init_db
from accountauth.models.user import User
from accountauth.repositories.sql import SqlUnitOfWork
from accountauth.services.auth import AuthService
from accountauth.services.notifications import build_notifier


def build_auth_service(settings: Settings, *, create_tables: bool = False) -> AuthService:
    engine = build_engine(settings.DATABASE_URL)
    if create_tables:
        init_db(engine)
    session_factory = build_session_factory(engine)
    return AuthService(
        unit_of_work=partial(SqlUnitOfWork, session_factory),
        password_codec=PasswordCodec(),
        token_generator=TokenGenerator(settings.ONE_TIME_TOKEN_DIGITS),
        session_signer=SessionSigner(settings.session_config()),
        notifier=build_notifier(settings),
        token_ttl=settings.one_time_token_ttl,
        logger=logging.getLogger(f"{APP_LOGGER}.auth"),
    )


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def get_current_user(request: Request, service: AuthService = Depends(get_auth_service)) -> User:
    token = _extract_bearer_token(request)
    if not token:
        raise AuthenticationRequiredError()
    return service.current_user(token)
