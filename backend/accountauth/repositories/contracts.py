"""Storage ports consumed by the auth service.

Adapters must enforce uniqueness themselves (unique indexes); the service
never locks. Every method may raise ``StorageUnavailableError``.
"""

from __future__ import annotations

import datetime as dt
from typing import Protocol
from uuid import UUID

from accountauth.models.one_time_token import OneTimeToken
from accountauth.models.user import User


class UserStore(Protocol):
    def find_by_email(self, email: str) -> User | None: ...

    def find_by_id(self, user_id: UUID) -> User | None: ...

    def save(self, user: User) -> None: ...

    def insert_if_absent(self, user: User) -> bool:
        """Insert ``user`` unless its email exists; ``False`` means another writer won."""
        ...


class TokenStore(Protocol):
    def find_by_value(self, value: str) -> OneTimeToken | None: ...

    def save(self, token: OneTimeToken) -> None: ...

    def insert_if_absent(self, token: OneTimeToken) -> bool: ...

    def delete(self, token: OneTimeToken) -> None: ...

    def delete_expired(self, now: dt.datetime) -> int: ...


class UnitOfWork(Protocol):
    """One transaction spanning both stores.

    Writes become durable only on ``commit``; leaving the context without
    committing discards them.
    """

    users: UserStore
    tokens: TokenStore

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...  # noqa: ANN001

    def commit(self) -> None: ...
