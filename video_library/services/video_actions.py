from __future__ import annotations

import logging

from video_library.errors import ValidationError
from video_library.repositories.liked_video_repository import (
    LikedVideoRecord,
    LikedVideoRepository,
)
from video_library.repositories.saved_video_repository import (
    SavedVideoRecord,
    SavedVideoRepository,
)
from video_library.services.identity import AuthenticatedUser
from video_library.telemetry import TelemetryClient

LOGGER = logging.getLogger("video_library.library")


class VideoActions:
    """Save/like commands. The owner always comes from the gated user, never the client."""

    def __init__(
        self,
        *,
        saved_repository: SavedVideoRepository,
        liked_repository: LikedVideoRepository,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._saved = saved_repository
        self._liked = liked_repository
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    def save_video(
        self,
        user: AuthenticatedUser,
        *,
        video_id: str | None,
        title: str | None,
        thumbnail: str | None,
        channel: str | None,
    ) -> SavedVideoRecord:
        if not all(_present(value) for value in (video_id, title, thumbnail, channel)):
            raise ValidationError("All video fields are required")
        assert video_id is not None and title is not None
        assert thumbnail is not None and channel is not None

        record = self._saved.save_video(
            user_id=user.user_id,
            video_id=video_id,
            title=title,
            thumbnail=thumbnail,
            channel=channel,
        )
        self._emit("save", user, record.video_id)
        return record

    def unsave_video(self, user: AuthenticatedUser, *, video_id: str) -> int:
        # An id matching no row, blank included, is reported as not found.
        removed = self._saved.unsave_video(user_id=user.user_id, video_id=video_id)
        self._emit("unsave", user, video_id, removed=removed)
        return removed

    def like_video(self, user: AuthenticatedUser, *, video_id: str | None) -> LikedVideoRecord:
        if video_id is None or not _present(video_id):
            raise ValidationError("Video ID is required")
        record = self._liked.like_video(user_id=user.user_id, video_id=video_id)
        self._emit("like", user, record.video_id)
        return record

    def unlike_video(self, user: AuthenticatedUser, *, video_id: str) -> None:
        self._liked.unlike_video(user_id=user.user_id, video_id=video_id)
        self._emit("unlike", user, video_id)

    def list_saved(self, user: AuthenticatedUser) -> list[SavedVideoRecord]:
        return self._saved.list_saved(user_id=user.user_id)

    def _emit(self, action: str, user: AuthenticatedUser, video_id: str, **extra: int) -> None:
        LOGGER.debug("library action=%s user_id=%s video_id=%s", action, user.user_id, video_id)
        self._telemetry.emit(
            "library.action",
            action=action,
            user_id=user.user_id,
            video_id=video_id,
            **extra,
        )


def _present(value: str | None) -> bool:
    return isinstance(value, str) and bool(value.strip())
