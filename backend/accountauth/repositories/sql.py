"""SQLAlchemy implementations of the user and token stores."""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Callable, Iterator
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from accountauth.core.exceptions import StorageUnavailableError
from accountauth.models.one_time_token import OneTimeToken
from accountauth.models.user import User

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Storage operation failed: %s (%s)", operation, exc.__class__.__name__)
        raise StorageUnavailableError() from exc


def _insert_in_savepoint(db: Session, obj: object, operation: str) -> bool:
    with _storage_errors(operation):
        try:
            with db.begin_nested():
                db.add(obj)
        except (IntegrityError, FlushError):
            # unique key taken; only the savepoint is rolled back
            return False
    return True


class SqlUserStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_email(self, email: str) -> User | None:
        with _storage_errors("user.find_by_email"):
            return self._db.scalars(select(User).where(User.email == email)).first()

    def find_by_id(self, user_id: UUID) -> User | None:
        with _storage_errors("user.find_by_id"):
            return self._db.get(User, user_id)

    def save(self, user: User) -> None:
        with _storage_errors("user.save"):
            self._db.add(user)
            self._db.flush()

    def insert_if_absent(self, user: User) -> bool:
        return _insert_in_savepoint(self._db, user, "user.insert")


class SqlTokenStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_value(self, value: str) -> OneTimeToken | None:
        with _storage_errors("token.find_by_value"):
            return self._db.get(OneTimeToken, value)

    def save(self, token: OneTimeToken) -> None:
        with _storage_errors("token.save"):
            self._db.add(token)
            self._db.flush()

    def insert_if_absent(self, token: OneTimeToken) -> bool:
        return _insert_in_savepoint(self._db, token, "token.insert")

    def delete(self, token: OneTimeToken) -> None:
        with _storage_errors("token.delete"):
            self._db.delete(token)
            self._db.flush()

    def delete_expired(self, now: dt.datetime) -> int:
        with _storage_errors("token.delete_expired"):
            result = self._db.execute(
                delete(OneTimeToken)
                .where(OneTimeToken.expires_at <= now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0


class SqlUnitOfWork:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> "SqlUnitOfWork":
        self.session = self._session_factory()
        self.users = SqlUserStore(self.session)
        self.tokens = SqlTokenStore(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        assert self.session is not None
        # close() rolls back anything left uncommitted
        self.session.close()
        self.session = None

    def commit(self) -> None:
        assert self.session is not None
        with _storage_errors("commit"):
            try:
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
