"""Security helpers for hashing passwords, one-time codes and session JWTs."""

from __future__ import annotations

import datetime as dt
import secrets
from dataclasses import dataclass
from typing import Callable
from uuid import uuid4

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext

from accountauth.core.exceptions import ExpiredTokenError, MalformedTokenError, SignatureInvalidError

ACCESS_TOKEN_TYPE = "access"
MIN_TOKEN_DIGITS = 6


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _is_canonical_segment(segment: str) -> bool:
    # base64 decoding ignores the unused low bits of the last character
    if not segment.isascii():
        return False
    encoded = segment.encode("ascii")
    try:
        return base64url_encode(base64url_decode(encoded)) == encoded
    except ValueError:
        return False


class PasswordCodec:
    """One-way salted password hashing backed by passlib."""

    def __init__(self, schemes: tuple[str, ...] = ("pbkdf2_sha256",)) -> None:
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("password_required")
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not plaintext or not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (TypeError, ValueError):
            # unknown or garbled digest
            return False


class TokenGenerator:
    """Numeric one-time codes a user can type from an email."""

    def __init__(self, digits: int = MIN_TOKEN_DIGITS) -> None:
        if digits < MIN_TOKEN_DIGITS:
            raise ValueError(f"one-time codes need at least {MIN_TOKEN_DIGITS} digits")
        self.digits = digits

    def generate(self) -> str:
        return f"{secrets.randbelow(10 ** self.digits):0{self.digits}d}"


@dataclass(frozen=True)
class SessionConfig:
    secret: str
    ttl: dt.timedelta
    algorithm: str = "HS256"


class SessionSigner:
    """Issues and verifies stateless bearer credentials.

    Validity is carried entirely by the token: the ``exp`` claim and the HMAC
    signature. Nothing is stored server side, so a credential cannot be
    revoked before it expires.
    """

    def __init__(self, config: SessionConfig, *, clock: Callable[[], dt.datetime] | None = None) -> None:
        if not config.secret:
            raise ValueError("SessionSigner requires a non-empty secret")
        self._config = config
        self._clock = clock or _utcnow

    def issue(self, user_id: object) -> str:
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "type": ACCESS_TOKEN_TYPE,
            "jti": str(uuid4()),
            "iat": int(now.timestamp()),
            "exp": int((now + self._config.ttl).timestamp()),
        }
        return jwt.encode(claims, self._config.secret, algorithm=self._config.algorithm)

    def verify(self, token: str) -> str:
        """Return the user id carried by ``token``.

        Raises ``MalformedTokenError`` when the value is not a compact JWT or
        misses its subject or expiry, ``SignatureInvalidError`` for any
        altered header, payload or signature (including non-canonical
        base64url) and ``ExpiredTokenError`` once the signer's clock reaches
        ``exp``.
        """
        if not isinstance(token, str):
            raise MalformedTokenError()
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise MalformedTokenError()
        if not all(_is_canonical_segment(segment) for segment in segments):
            raise SignatureInvalidError()

        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise SignatureInvalidError() from exc

        user_id = payload.get("sub")
        expires_at = payload.get("exp")
        if (
            not user_id
            or payload.get("type") != ACCESS_TOKEN_TYPE
            or not isinstance(expires_at, (int, float))
            or isinstance(expires_at, bool)
        ):
            raise MalformedTokenError()
        if self._clock().timestamp() >= expires_at:
            raise ExpiredTokenError()
        return str(user_id)
