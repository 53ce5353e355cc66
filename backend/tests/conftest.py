from __future__ import annotations

import datetime as dt
import sys
from functools import partial
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from accountauth.core.security import PasswordCodec, SessionConfig, SessionSigner, TokenGenerator  # noqa: E402
from accountauth.db.session import build_engine, build_session_factory, init_db  # noqa: E402
from accountauth.repositories.sql import SqlUnitOfWork  # noqa: E402
from accountauth.services.auth import AuthService  # noqa: E402

TEST_SECRET = "test-secret"


class FrozenClock:
    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + dt.timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []

    def send_confirmation(self, email: str, name: str, token: str) -> None:
        self.sent.append(("confirmation", email, name, token))

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        self.sent.append(("password_reset", email, name, token))

    def last_token(self, kind: str) -> str:
        return [entry[3] for entry in self.sent if entry[0] == kind][-1]

    def count(self, kind: str) -> int:
        return sum(1 for entry in self.sent if entry[0] == kind)


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def signer(clock) -> SessionSigner:
    return SessionSigner(SessionConfig(secret=TEST_SECRET, ttl=dt.timedelta(hours=1)), clock=clock)


@pytest.fixture()
def make_service(session_factory, signer, clock, notifier):
    def _make(**overrides) -> AuthService:
        options = dict(
            unit_of_work=partial(SqlUnitOfWork, session_factory),
            password_codec=PasswordCodec(),
            token_generator=TokenGenerator(),
            session_signer=signer,
            notifier=notifier,
            token_ttl=dt.timedelta(minutes=10),
            clock=clock,
        )
        options.update(overrides)
        return AuthService(**options)

    return _make


@pytest.fixture()
def service(make_service) -> AuthService:
    return make_service()
