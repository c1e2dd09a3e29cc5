from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, cast
from urllib.parse import quote

import httpx

from video_library.errors import MetadataFetchError, UpstreamError

LOGGER = logging.getLogger("video_library.piped")

DEFAULT_USER_AGENT = "video-library/0.1"


@dataclass(frozen=True)
class VideoMetadata:
    title: str | None
    thumbnail_url: str | None
    uploader: str | None
    duration: int | None


class MetadataFetcher(Protocol):
    async def fetch_metadata(self, video_id: str) -> VideoMetadata:
        ...


class PipedClient:
    """
    Async client for a Piped API instance.

    Each call is a single attempt. Any non-2xx status, transport failure or
    undecodable body is reported as an error for that call only.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=max(1.0, float(timeout_seconds)),
            headers={"accept": "application/json", "user-agent": user_agent},
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_metadata(self, video_id: str) -> VideoMetadata:
        try:
            payload = await self._get_json(f"/streams/{_path_segment(video_id)}")
        except UpstreamError as exc:
            raise MetadataFetchError(video_id, str(exc)) from exc

        if not isinstance(payload, dict):
            raise MetadataFetchError(video_id, "unexpected response shape")
        data = cast(dict[str, Any], payload)
        return VideoMetadata(
            title=_as_text_or_none(data.get("title")),
            thumbnail_url=_as_text_or_none(data.get("thumbnailUrl")),
            uploader=_as_text_or_none(data.get("uploader")),
            duration=_as_int_or_none(data.get("duration")),
        )

    async def trending(self, *, region: str) -> Any:
        return await self._passthrough(
            "/trending",
            params={"region": region},
            failure_message="Failed to fetch trending videos",
        )

    async def search(self, *, query: str, search_filter: str | None) -> Any:
        params = {"q": query}
        if search_filter:
            params["filter"] = search_filter
        return await self._passthrough("/search", params=params, failure_message="Search failed")

    async def streams(self, video_id: str) -> Any:
        return await self._passthrough(
            f"/streams/{_path_segment(video_id)}",
            failure_message="Failed to fetch video streams",
        )

    async def comments(self, video_id: str) -> Any:
        return await self._passthrough(
            f"/comments/{_path_segment(video_id)}",
            failure_message="Failed to fetch comments",
        )

    async def _passthrough(
        self,
        path: str,
        *,
        failure_message: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            return await self._get_json(path, params=params)
        except UpstreamError as exc:
            raise UpstreamError(failure_message) from exc

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            LOGGER.warning("piped request failed path=%s error=%s", path, type(exc).__name__)
            raise UpstreamError(f"request failed: {exc}") from exc

        if not response.is_success:
            LOGGER.warning("piped request rejected path=%s status=%s", path, response.status_code)
            raise UpstreamError(f"upstream returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("upstream returned invalid JSON") from exc


def _path_segment(value: str) -> str:
    return quote(value.strip(), safe="")


def _as_text_or_none(value: object) -> str | None:
    if isinstance(value, str):
        return value
    return None


def _as_int_or_none(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None
