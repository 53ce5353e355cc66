from __future__ import annotations

import datetime as dt
import string

import pytest
from jose import jwt

from accountauth.core.exceptions import ExpiredTokenError, MalformedTokenError, SignatureInvalidError
from accountauth.core.security import PasswordCodec, SessionConfig, SessionSigner, TokenGenerator

SECRET = "unit-secret"
BASE64URL_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"


class _Clock:
    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now


def _signer(*, ttl: dt.timedelta = dt.timedelta(minutes=30), clock=None) -> SessionSigner:  # noqa: ANN001
    return SessionSigner(SessionConfig(secret=SECRET, ttl=ttl), clock=clock)


def _flip_char(value: str, index: int) -> str:
    replacement = "A" if value[index] != "A" else "B"
    return value[:index] + replacement + value[index + 1 :]


def test_password_round_trip_and_mismatch() -> None:
    codec = PasswordCodec()
    digest = codec.hash("password123")

    assert digest != "password123"
    assert codec.verify("password123", digest)
    assert not codec.verify("password124", digest)
    assert not codec.verify("password123", codec.hash("other-password"))


def test_password_hash_is_salted() -> None:
    codec = PasswordCodec()
    assert codec.hash("password123") != codec.hash("password123")


def test_password_hash_rejects_empty_input() -> None:
    codec = PasswordCodec()
    with pytest.raises(ValueError):
        codec.hash("")
    with pytest.raises(ValueError):
        codec.hash(None)  # type: ignore[arg-type]


def test_password_verify_never_raises_on_garbage() -> None:
    codec = PasswordCodec()
    assert codec.verify("password123", "not-a-hash") is False
    assert codec.verify("password123", "") is False
    assert codec.verify("", codec.hash("password123")) is False


def test_token_generator_produces_numeric_codes() -> None:
    generator = TokenGenerator()
    codes = {generator.generate() for _ in range(200)}

    assert all(len(code) == 6 and code.isdigit() for code in codes)
    # 200 draws from a million values; a handful of repeats at most
    assert len(codes) > 190


def test_token_generator_supports_longer_codes_only() -> None:
    assert len(TokenGenerator(8).generate()) == 8
    with pytest.raises(ValueError):
        TokenGenerator(4)


def test_session_signer_round_trip() -> None:
    signer = _signer()
    token = signer.issue("1c8f0f6e-58d3-4a4e-9d2c-2b1f3f7b9a10")

    assert signer.verify(token) == "1c8f0f6e-58d3-4a4e-9d2c-2b1f3f7b9a10"
    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == 30 * 60
    assert claims["type"] == "access"


def test_session_signer_rejects_expired_token() -> None:
    issued_at = dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)
    clock = _Clock(issued_at)
    signer = _signer(ttl=dt.timedelta(hours=1), clock=clock)
    token = signer.issue("user-1")

    clock.now = issued_at + dt.timedelta(minutes=59, seconds=59)
    assert signer.verify(token) == "user-1"
    clock.now = issued_at + dt.timedelta(hours=1)
    with pytest.raises(ExpiredTokenError):
        signer.verify(token)


def test_session_signer_expiry_follows_injected_clock() -> None:
    # a token issued years ago is still fresh for a signer whose clock agrees
    issued_at = dt.datetime(2001, 1, 1, tzinfo=dt.timezone.utc)
    signer = _signer(clock=lambda: issued_at)

    assert signer.verify(signer.issue("user-1")) == "user-1"
    with pytest.raises(ExpiredTokenError):
        _signer().verify(signer.issue("user-1"))


def test_session_signer_rejects_any_single_character_change() -> None:
    signer = _signer()
    token = signer.issue("user-1")
    accepted = []

    for index, original in enumerate(token):
        if original == ".":
            continue
        for replacement in BASE64URL_ALPHABET:
            if replacement == original:
                continue
            tampered = token[:index] + replacement + token[index + 1 :]
            try:
                signer.verify(tampered)
            except SignatureInvalidError:
                continue
            accepted.append((index, original, replacement))

    assert accepted == []


def test_session_signer_rejects_non_canonical_signature_padding() -> None:
    signer = _signer()
    header, payload, signature = signer.issue("user-1").split(".")
    # the final character of a 43-char HS256 signature carries two unused bits
    last = BASE64URL_ALPHABET.index(signature[-1])
    sibling = BASE64URL_ALPHABET[last ^ 1]

    with pytest.raises(SignatureInvalidError):
        signer.verify(".".join([header, payload, signature[:-1] + sibling]))


def test_session_signer_rejects_altered_signature() -> None:
    signer = _signer()
    header, payload, signature = signer.issue("user-1").split(".")
    tampered = ".".join([header, payload, _flip_char(signature, len(signature) // 2)])

    with pytest.raises(SignatureInvalidError):
        signer.verify(tampered)


def test_session_signer_rejects_altered_payload() -> None:
    signer = _signer()
    header, payload, signature = signer.issue("user-1").split(".")
    tampered = ".".join([header, _flip_char(payload, len(payload) // 2), signature])

    with pytest.raises(SignatureInvalidError):
        signer.verify(tampered)


def test_session_signer_rejects_foreign_key() -> None:
    forged = SessionSigner(SessionConfig(secret="someone-else", ttl=dt.timedelta(minutes=5))).issue("user-1")

    with pytest.raises(SignatureInvalidError):
        _signer().verify(forged)


@pytest.mark.parametrize("value", ["", "abc", "a.b", "a..c", None])
def test_session_signer_rejects_malformed_values(value) -> None:  # noqa: ANN001
    with pytest.raises(MalformedTokenError):
        _signer().verify(value)


def test_session_signer_requires_subject() -> None:
    now = int(dt.datetime.now(dt.timezone.utc).timestamp())
    token = jwt.encode({"type": "access", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")

    with pytest.raises(MalformedTokenError):
        _signer().verify(token)


def test_session_signer_requires_secret() -> None:
    with pytest.raises(ValueError):
        SessionSigner(SessionConfig(secret="", ttl=dt.timedelta(minutes=5)))
