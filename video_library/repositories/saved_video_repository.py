from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from video_library.errors import NotFoundError, StoreError
from video_library.repositories.common import require_text, utc_now_iso
from video_library.repositories.database import Database


@dataclass(frozen=True)
class SavedVideoRecord:
    id: int
    user_id: int
    video_id: str
    title: str
    thumbnail: str
    channel: str
    saved_at: str


class SavedVideoRepository:
    """Saved-video rows. Saving the same video twice keeps both rows."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def save_video(
        self,
        *,
        user_id: int,
        video_id: str,
        title: str,
        thumbnail: str,
        channel: str,
    ) -> SavedVideoRecord:
        for field_name, value in (
            ("videoId", video_id),
            ("title", title),
            ("thumbnail", thumbnail),
            ("channel", channel),
        ):
            require_text(field_name, value)
        saved_at = utc_now_iso()

        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO saved_videos
                    (user_id, video_id, title, thumbnail, channel, saved_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, video_id, title, thumbnail, channel, saved_at),
                )
                saved_id = cursor.lastrowid
        except sqlite3.Error as exc:
            raise StoreError("save_video", str(exc)) from exc

        assert saved_id is not None
        return SavedVideoRecord(
            id=saved_id,
            user_id=user_id,
            video_id=video_id,
            title=title,
            thumbnail=thumbnail,
            channel=channel,
            saved_at=saved_at,
        )

    def unsave_video(self, *, user_id: int, video_id: str) -> int:
        # Removes every matching row, not just the most recent one.
        try:
            with self._db.connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM saved_videos WHERE user_id = ? AND video_id = ?",
                    (user_id, video_id),
                )
                removed = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError("unsave_video", str(exc)) from exc

        if removed == 0:
            raise NotFoundError("Saved video not found")
        return removed

    def list_saved(self, *, user_id: int) -> list[SavedVideoRecord]:
        try:
            with self._db.connection() as conn:
                rows = conn.execute(
                    """
                    SELECT id, user_id, video_id, title, thumbnail, channel, saved_at
                    FROM saved_videos
                    WHERE user_id = ?
                    ORDER BY saved_at DESC, id DESC
                    """,
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("list_saved", str(exc)) from exc

        return [
            SavedVideoRecord(
                id=int(row["id"]),
                user_id=int(row["user_id"]),
                video_id=str(row["video_id"]),
                title=str(row["title"]),
                thumbnail=str(row["thumbnail"]),
                channel=str(row["channel"]),
                saved_at=str(row["saved_at"]),
            )
            for row in rows
        ]
