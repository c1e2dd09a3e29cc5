from __future__ import annotations

import hashlib
import secrets
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from video_library.errors import StoreError
from video_library.repositories.common import utc_now_iso
from video_library.repositories.database import Database


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    user_id: int
    created_at: str
    expires_at: str
    revoked_at: str | None


class SessionRepository:
    """
    Login sessions.

    Clients hold `<session_id>.<secret>`; only the SHA-256 of the secret is stored.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def create_session(self, *, user_id: int, ttl_seconds: int) -> tuple[SessionRecord, str]:
        session_id = f"sess_{secrets.token_urlsafe(9)}"
        secret = secrets.token_urlsafe(24)
        now = datetime.now(UTC)
        created_at = now.isoformat()
        expires_at = (now + timedelta(seconds=max(1, ttl_seconds))).isoformat()
        try:
            with self._db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO sessions (
                        session_id, user_id, secret_hash, created_at, expires_at, revoked_at
                    )
                    VALUES (?, ?, ?, ?, ?, NULL)
                    """,
                    (session_id, user_id, _hash_secret(secret), created_at, expires_at),
                )
        except sqlite3.Error as exc:
            raise StoreError("create_session", str(exc)) from exc

        return (
            SessionRecord(
                session_id=session_id,
                user_id=user_id,
                created_at=created_at,
                expires_at=expires_at,
                revoked_at=None,
            ),
            f"{session_id}.{secret}",
        )

    def resolve_token(self, token: str) -> int | None:
        """Return the owning user id for a live session token, otherwise None."""
        session_id, separator, secret = token.strip().partition(".")
        if not separator or not session_id or not secret:
            return None

        try:
            with self._db.connection() as conn:
                row = conn.execute(
                    """
                    SELECT user_id, secret_hash, expires_at
                    FROM sessions
                    WHERE session_id = ? AND revoked_at IS NULL
                    """,
                    (session_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("resolve_session", str(exc)) from exc

        if row is None:
            return None
        if not secrets.compare_digest(str(row["secret_hash"]), _hash_secret(secret)):
            return None
        if datetime.fromisoformat(str(row["expires_at"])) <= datetime.now(UTC):
            return None
        return int(row["user_id"])

    def revoke_token(self, token: str) -> bool:
        session_id, _, _ = token.strip().partition(".")
        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    """
                    UPDATE sessions
                    SET revoked_at = ?
                    WHERE session_id = ? AND revoked_at IS NULL
                    """,
                    (utc_now_iso(), session_id),
                )
        except sqlite3.Error as exc:
            raise StoreError("revoke_session", str(exc)) from exc
        return cursor.rowcount > 0


def _hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()
