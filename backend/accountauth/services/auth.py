"""Service layer for registration, confirmation, login and password resets."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable
from uuid import UUID, uuid4

from accountauth.core.exceptions import (
    AlreadyConfirmedError,
    BadCredentialsError,
    EmailTakenError,
    InternalError,
    MalformedTokenError,
    NotConfirmedError,
    NotificationDeliveryError,
    TokenInvalidError,
    UnauthorizedError,
    UserNotFoundError,
)
from accountauth.core.security import PasswordCodec, SessionSigner, TokenGenerator
from accountauth.models.enums import TokenPurpose
from accountauth.models.one_time_token import OneTimeToken
from accountauth.models.user import User
from accountauth.repositories.contracts import UnitOfWork
from accountauth.services.notifications import NotificationError, Notifier

ACCOUNT_CREATED = "Account created, check your email"
ACCOUNT_CONFIRMED = "Account confirmed, you can now log in"
CONFIRMATION_RESENT = "A new code was sent to your email"
RESET_REQUESTED = "Check your email"
RESET_TOKEN_VALID = "Token is valid, set your new password"
PASSWORD_RESET = "Password reset successfully"

DEFAULT_TOKEN_TTL = dt.timedelta(minutes=10)
TOKEN_INSERT_ATTEMPTS = 5


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AuthService:
    """Runs the account flows against a unit of work.

    Every flow opens its own unit of work, so user and token writes of one
    flow commit together. Emails go out only after the commit, and a failed
    email never undoes a committed token.
    """

    def __init__(
        self,
        *,
        unit_of_work: Callable[[], UnitOfWork],
        password_codec: PasswordCodec,
        token_generator: TokenGenerator,
        session_signer: SessionSigner,
        notifier: Notifier,
        token_ttl: dt.timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], dt.datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._uow = unit_of_work
        self.password_codec = password_codec
        self.token_generator = token_generator
        self.session_signer = session_signer
        self.notifier = notifier
        self.token_ttl = token_ttl
        self._clock = clock or _utcnow
        self.logger = logger or logging.getLogger(__name__)

    # --------- Flows ----------
    def register(self, email: str, password: str, name: str) -> str:
        password_hash = self.password_codec.hash(password)
        with self._uow() as uow:
            if uow.users.find_by_email(email) is not None:
                self.logger.warning("Registration rejected: email already registered (%s)", email)
                raise EmailTakenError()

            user = User(
                id=uuid4(),
                email=email,
                name=name,
                password_hash=password_hash,
                confirmed=False,
                created_at=self._clock(),
            )
            if not uow.users.insert_if_absent(user):
                self.logger.warning("Registration rejected: concurrent signup for %s", email)
                raise EmailTakenError()
            token = self._issue_token(uow, user, TokenPurpose.confirmation)
            uow.commit()

        self.logger.info("Account created: %s", email)
        self._notify(self.notifier.send_confirmation, user, token, TokenPurpose.confirmation)
        return ACCOUNT_CREATED

    def confirm(self, token_value: str) -> str:
        with self._uow() as uow:
            token, user = self._load_token(uow, token_value, TokenPurpose.confirmation, consume=True)
            user.mark_confirmed()
            uow.users.save(user)
            uow.tokens.delete(token)
            uow.commit()

        self.logger.info("Account confirmed: user %s", user.id)
        return ACCOUNT_CONFIRMED

    def login(self, email: str, password: str) -> str:
        """Return a session credential for a confirmed account.

        An unconfirmed account never gets a credential, whatever the
        password; instead a fresh confirmation code is issued and mailed,
        leaving earlier codes valid.
        """
        pending_token: str | None = None
        with self._uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                self.logger.warning("Login failed: user not found (%s)", email)
                raise UserNotFoundError()
            if not user.confirmed:
                pending_token = self._issue_token(uow, user, TokenPurpose.confirmation)
                uow.commit()

        if pending_token is not None:
            self.logger.warning("Login rejected: account not confirmed (%s), confirmation resent", email)
            self._notify(self.notifier.send_confirmation, user, pending_token, TokenPurpose.confirmation)
            raise NotConfirmedError()

        if not self.password_codec.verify(password, user.password_hash):
            self.logger.warning("Login failed: invalid password (%s)", email)
            raise BadCredentialsError()

        session_token = self.session_signer.issue(user.id)
        self.logger.info("User authenticated: %s", email)
        return session_token

    def resend_confirmation(self, email: str) -> str:
        with self._uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                self.logger.warning("Confirmation resend failed: user not found (%s)", email)
                raise UserNotFoundError("User is not registered")
            if user.confirmed:
                self.logger.warning("Confirmation resend rejected: already confirmed (%s)", email)
                raise AlreadyConfirmedError()
            token = self._issue_token(uow, user, TokenPurpose.confirmation)
            uow.commit()

        self.logger.info("Confirmation code reissued: %s", email)
        self._notify(self.notifier.send_confirmation, user, token, TokenPurpose.confirmation)
        return CONFIRMATION_RESENT

    def request_password_reset(self, email: str) -> str:
        with self._uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                self.logger.warning("Password reset request failed: user not found (%s)", email)
                raise UserNotFoundError("User is not registered")
            token = self._issue_token(uow, user, TokenPurpose.password_reset)
            uow.commit()

        self.logger.info("Password reset code issued: %s", email)
        self._notify(self.notifier.send_password_reset, user, token, TokenPurpose.password_reset)
        return RESET_REQUESTED

    def validate_reset_token(self, token_value: str) -> str:
        with self._uow() as uow:
            self._load_token(uow, token_value, TokenPurpose.password_reset, consume=False)
        return RESET_TOKEN_VALID

    def apply_password_reset(self, token_value: str, new_password: str) -> str:
        password_hash = self.password_codec.hash(new_password)
        with self._uow() as uow:
            token, user = self._load_token(uow, token_value, TokenPurpose.password_reset, consume=True)
            user.password_hash = password_hash
            uow.users.save(user)
            uow.tokens.delete(token)
            uow.commit()

        self.logger.info("Password reset success: user %s", user.id)
        return PASSWORD_RESET

    def current_user(self, session_token: str) -> User:
        user_id = self.session_signer.verify(session_token)
        try:
            parsed_user_id = UUID(user_id)
        except ValueError as exc:
            raise MalformedTokenError() from exc

        with self._uow() as uow:
            user = uow.users.find_by_id(parsed_user_id)
        if user is None:
            self.logger.warning("Session rejected: user %s no longer exists", parsed_user_id)
            raise UnauthorizedError("user_not_found", error_code="USER_NOT_FOUND")
        return user

    def purge_expired_tokens(self) -> int:
        with self._uow() as uow:
            removed = uow.tokens.delete_expired(self._clock())
            uow.commit()
        if removed:
            self.logger.info("Expired one-time tokens purged: %d", removed)
        return removed

    # --------- Helpers ----------
    def _issue_token(self, uow: UnitOfWork, user: User, purpose: TokenPurpose) -> str:
        now = self._clock()
        for _ in range(TOKEN_INSERT_ATTEMPTS):
            token = OneTimeToken(
                token=self.token_generator.generate(),
                user_id=user.id,
                purpose=purpose,
                created_at=now,
                expires_at=now + self.token_ttl,
            )
            if uow.tokens.insert_if_absent(token):
                return token.token
        self.logger.error("Could not allocate a unique %s token for user %s", purpose.value, user.id)
        raise InternalError()

    def _load_token(
        self,
        uow: UnitOfWork,
        token_value: str,
        purpose: TokenPurpose,
        *,
        consume: bool,
    ) -> tuple[OneTimeToken, User]:
        token = uow.tokens.find_by_value(token_value)
        if token is None or token.purpose != purpose:
            self.logger.warning("Token rejected: unknown or wrong purpose (%s)", purpose.value)
            raise TokenInvalidError()

        if token.is_expired(self._clock()):
            self.logger.warning("Token rejected: expired (%s, user %s)", purpose.value, token.user_id)
            if consume:
                uow.tokens.delete(token)
                uow.commit()
            raise TokenInvalidError()

        user = uow.users.find_by_id(token.user_id)
        if user is None:
            self.logger.warning("Token rejected: user %s not found", token.user_id)
            raise TokenInvalidError()
        return token, user

    def _notify(
        self,
        send: Callable[[str, str, str], None],
        user: User,
        token: str,
        purpose: TokenPurpose,
    ) -> None:
        try:
            send(user.email, user.name, token)
        except NotificationError as exc:
            self.logger.error("Notification failed: %s email to %s", purpose.value, user.email)
            raise NotificationDeliveryError(details={"kind": purpose.value}) from exc
