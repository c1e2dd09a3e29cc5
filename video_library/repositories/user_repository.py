from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from video_library.errors import EmailAlreadyExistsError, StoreError
from video_library.repositories.common import utc_now_iso
from video_library.repositories.database import Database, is_unique_violation


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    name: str
    password_hash: str
    created_at: str


class UserRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def create_user(self, *, email: str, name: str, password_hash: str) -> UserRecord:
        created_at = utc_now_iso()
        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO users (email, password_hash, name, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (email, password_hash, name, created_at),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                raise EmailAlreadyExistsError() from exc
            raise StoreError("create_user", str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError("create_user", str(exc)) from exc

        assert user_id is not None
        return UserRecord(
            id=user_id,
            email=email,
            name=name,
            password_hash=password_hash,
            created_at=created_at,
        )

    def get_by_email(self, email: str) -> UserRecord | None:
        return self._get_one("SELECT * FROM users WHERE email = ?", (email,))

    def get_by_id(self, user_id: int) -> UserRecord | None:
        return self._get_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def _get_one(self, query: str, params: tuple[object, ...]) -> UserRecord | None:
        try:
            with self._db.connection() as conn:
                row = conn.execute(query, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("get_user", str(exc)) from exc

        if row is None:
            return None
        return UserRecord(
            id=int(row["id"]),
            email=str(row["email"]),
            name=str(row["name"]),
            password_hash=str(row["password_hash"]),
            created_at=str(row["created_at"]),
        )
