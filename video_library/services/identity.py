from __future__ import annotations

from dataclasses import dataclass

from video_library.errors import UnauthorizedError
from video_library.repositories.session_repository import SessionRepository


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: int
    session_token: str


class IdentityGate:
    def __init__(self, session_repository: SessionRepository) -> None:
        self._sessions = session_repository

    def authenticate(self, token: str | None) -> AuthenticatedUser:
        if token is None or not token.strip():
            raise UnauthorizedError()
        user_id = self._sessions.resolve_token(token)
        if user_id is None:
            raise UnauthorizedError()
        return AuthenticatedUser(user_id=user_id, session_token=token.strip())


def extract_session_token(
    *,
    authorization_header: str | None,
    session_cookie: str | None,
) -> str | None:
    if isinstance(authorization_header, str):
        scheme, _, credentials = authorization_header.strip().partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    if isinstance(session_cookie, str) and session_cookie.strip():
        return session_cookie.strip()
    return None
