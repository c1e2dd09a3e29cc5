from __future__ import annotations

import logging
from dataclasses import dataclass

from video_library.errors import InvalidCredentialsError, NotFoundError, ValidationError
from video_library.repositories.session_repository import SessionRepository
from video_library.repositories.user_repository import UserRecord, UserRepository
from video_library.services.identity import AuthenticatedUser
from video_library.services.passwords import hash_password, verify_password
from video_library.services.rate_limiter import SlidingWindowRateLimiter

LOGGER = logging.getLogger("video_library.accounts")


@dataclass(frozen=True)
class LoginResult:
    user: UserRecord
    token: str
    expires_at: str


class AccountService:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        session_repository: SessionRepository,
        login_rate_limiter: SlidingWindowRateLimiter,
        password_hash_iterations: int,
        session_ttl_seconds: int,
    ) -> None:
        self._users = user_repository
        self._sessions = session_repository
        self._login_rate_limiter = login_rate_limiter
        self._password_hash_iterations = password_hash_iterations
        self._session_ttl_seconds = session_ttl_seconds

    def register(
        self,
        *,
        email: str | None,
        password: str | None,
        name: str | None,
    ) -> UserRecord:
        normalized_email = _normalize_email(email)
        normalized_name = name.strip() if isinstance(name, str) else ""
        if not normalized_email or not password or not normalized_name:
            raise ValidationError("All fields are required")

        user = self._users.create_user(
            email=normalized_email,
            name=normalized_name,
            password_hash=hash_password(password, iterations=self._password_hash_iterations),
        )
        LOGGER.info("user registered user_id=%s", user.id)
        return user

    def login(self, *, email: str | None, password: str | None, client_key: str) -> LoginResult:
        normalized_email = _normalize_email(email)
        if not normalized_email or not password:
            raise ValidationError("Email and password are required")

        self._login_rate_limiter.enforce(client_key)
        user = self._users.get_by_email(normalized_email)
        if user is None or not verify_password(password, user.password_hash):
            LOGGER.info("login rejected client=%s", client_key)
            raise InvalidCredentialsError()

        self._login_rate_limiter.forget(client_key)
        session, token = self._sessions.create_session(
            user_id=user.id,
            ttl_seconds=self._session_ttl_seconds,
        )
        LOGGER.info("login accepted user_id=%s session_id=%s", user.id, session.session_id)
        return LoginResult(user=user, token=token, expires_at=session.expires_at)

    def logout(self, user: AuthenticatedUser) -> None:
        self._sessions.revoke_token(user.session_token)

    def current_user(self, user: AuthenticatedUser) -> UserRecord:
        record = self._users.get_by_id(user.user_id)
        if record is None:
            raise NotFoundError("User not found")
        return record


def _normalize_email(value: str | None) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()
