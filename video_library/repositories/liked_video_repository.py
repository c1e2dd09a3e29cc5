from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from video_library.errors import DuplicateLikeError, NotFoundError, StoreError
from video_library.repositories.common import require_text, utc_now_iso
from video_library.repositories.database import Database, is_unique_violation


@dataclass(frozen=True)
class LikedVideoRecord:
    id: int
    user_id: int
    video_id: str
    liked_at: str


class LikedVideoRepository:
    """
    Liked-video rows, at most one per (user, video).

    Duplicate detection relies on the unique index rather than a read-then-insert,
    so two concurrent likes of the same video cannot both succeed.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def like_video(self, *, user_id: int, video_id: str) -> LikedVideoRecord:
        require_text("videoId", video_id)
        liked_at = utc_now_iso()
        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO liked_videos (user_id, video_id, liked_at)
                    VALUES (?, ?, ?)
                    """,
                    (user_id, video_id, liked_at),
                )
                like_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateLikeError(video_id) from exc
            raise StoreError("like_video", str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError("like_video", str(exc)) from exc

        assert like_id is not None
        return LikedVideoRecord(
            id=like_id,
            user_id=user_id,
            video_id=video_id,
            liked_at=liked_at,
        )

    def unlike_video(self, *, user_id: int, video_id: str) -> None:
        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM liked_videos WHERE user_id = ? AND video_id = ?",
                    (user_id, video_id),
                )
                removed = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError("unlike_video", str(exc)) from exc

        if removed == 0:
            raise NotFoundError("Like not found")

    def list_liked_ids(self, *, user_id: int) -> list[str]:
        try:
            with self._db.connection() as conn:
                rows = conn.execute(
                    """
                    SELECT video_id
                    FROM liked_videos
                    WHERE user_id = ?
                    ORDER BY liked_at DESC, id DESC
                    """,
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("list_liked_ids", str(exc)) from exc
        return [str(row["video_id"]) for row in rows]
