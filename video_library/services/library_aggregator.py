from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from video_library.errors import EnrichmentFailedError, MetadataFetchError
from video_library.repositories.liked_video_repository import LikedVideoRepository
from video_library.services.concurrency import join_all
from video_library.services.identity import AuthenticatedUser
from video_library.services.piped_client import MetadataFetcher, VideoMetadata
from video_library.telemetry import TelemetryClient

LOGGER = logging.getLogger("video_library.library")


@dataclass(frozen=True)
class EnrichedLikedVideo:
    video_id: str
    title: str | None
    thumbnail: str | None
    channel: str | None
    duration: int | None


class LibraryAggregator:
    """
    Joins a user's liked-video ids with live upstream metadata.

    Two phases: one store read for the ordered ids, then a concurrent fetch per
    id joined all-or-nothing. A single failed fetch fails the whole read.
    Nothing is cached; every call goes back to the upstream service.
    """

    def __init__(
        self,
        *,
        liked_repository: LikedVideoRepository,
        metadata_fetcher: MetadataFetcher,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._liked = liked_repository
        self._fetcher = metadata_fetcher
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    async def list_liked_enriched(self, user: AuthenticatedUser) -> list[EnrichedLikedVideo]:
        video_ids = await asyncio.to_thread(self._liked.list_liked_ids, user_id=user.user_id)
        if not video_ids:
            return []

        with self._telemetry.timed(
            "library.liked.enrich",
            user_id=user.user_id,
            video_count=len(video_ids),
        ) as outcome:
            try:
                metadata = await join_all(
                    [self._fetcher.fetch_metadata(video_id) for video_id in video_ids]
                )
            except Exception as exc:
                failed_video_id = exc.video_id if isinstance(exc, MetadataFetchError) else None
                outcome["failed_video_id"] = failed_video_id
                outcome["cause_type"] = type(exc).__name__
                LOGGER.warning(
                    "liked video enrichment failed user_id=%s video_id=%s error=%s",
                    user.user_id,
                    failed_video_id,
                    exc,
                )
                raise EnrichmentFailedError() from exc

        return [
            _enrich(video_id, item)
            for video_id, item in zip(video_ids, metadata, strict=True)
        ]


def _enrich(video_id: str, metadata: VideoMetadata) -> EnrichedLikedVideo:
    return EnrichedLikedVideo(
        video_id=video_id,
        title=metadata.title,
        thumbnail=metadata.thumbnail_url,
        channel=metadata.uploader,
        duration=metadata.duration,
    )
