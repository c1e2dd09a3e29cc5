from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from video_library.repositories.saved_video_repository import SavedVideoRecord
from video_library.services.library_aggregator import EnrichedLikedVideo

# Request fields are optional so that missing values reach the command layer
# and come back as a 400 with a readable message instead of a schema error.


class SaveVideoRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    video_id: str | None = Field(default=None, alias="videoId")
    title: str | None = None
    thumbnail: str | None = None
    channel: str | None = None


class LikeVideoRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    video_id: str | None = Field(default=None, alias="videoId")


class SuccessResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True


class SaveVideoResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    success: bool = True
    saved_id: int = Field(alias="savedId")


class LikeVideoResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    success: bool = True
    like_id: int = Field(alias="likeId")


class SavedVideo(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    video_id: str = Field(alias="videoId")
    title: str
    thumbnail: str
    channel: str
    saved_at: str = Field(alias="savedAt")

    @classmethod
    def from_record(cls, record: SavedVideoRecord) -> SavedVideo:
        return cls(
            video_id=record.video_id,
            title=record.title,
            thumbnail=record.thumbnail,
            channel=record.channel,
            saved_at=record.saved_at,
        )


class LikedVideo(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    video_id: str = Field(alias="videoId")
    title: str | None
    thumbnail: str | None
    channel: str | None
    duration: int | None

    @classmethod
    def from_enriched(cls, video: EnrichedLikedVideo) -> LikedVideo:
        return cls(
            video_id=video.video_id,
            title=video.title,
            thumbnail=video.thumbnail,
            channel=video.channel,
            duration=video.duration,
        )


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    code: str
