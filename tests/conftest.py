from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from video_library.dependencies import get_metadata_fetcher, reset_cached_dependencies
from video_library.errors import MetadataFetchError
from video_library.main import create_app
from video_library.repositories.database import Database
from video_library.repositories.user_repository import UserRepository
from video_library.services.piped_client import VideoMetadata


class FakeMetadataFetcher:
    def __init__(self) -> None:
        self.videos: dict[str, VideoMetadata] = {}
        self.failing_ids: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    def add(self, video_id: str, *, duration: int = 60) -> None:
        self.videos[video_id] = VideoMetadata(
            title=f"Title {video_id}",
            thumbnail_url=f"https://img.example/{video_id}.jpg",
            uploader=f"Channel {video_id}",
            duration=duration,
        )

    async def fetch_metadata(self, video_id: str) -> VideoMetadata:
        self.calls.append(video_id)
        try:
            delay = self.delays.get(video_id, 0.0)
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(video_id)
            raise
        if video_id in self.failing_ids or video_id not in self.videos:
            raise MetadataFetchError(video_id, "upstream returned HTTP 500")
        return self.videos[video_id]


@pytest.fixture
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "state.db")
    db.initialize()
    return db


@pytest.fixture
def user_id(database: Database) -> int:
    user = UserRepository(database).create_user(
        email="owner@example.com",
        name="Owner",
        password_hash="unused",
    )
    return user.id


@pytest.fixture
def fake_fetcher() -> FakeMetadataFetcher:
    return FakeMetadataFetcher()


def configure_env(data_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("VIDEO_LIBRARY_DATA_DIR", str(data_dir))
    monkeypatch.setenv("VIDEO_LIBRARY_PASSWORD_HASH_ITERATIONS", "1000")
    monkeypatch.setenv("VIDEO_LIBRARY_PIPED_API_BASE_URL", "http://piped.test")
    monkeypatch.setenv("VIDEO_LIBRARY_TELEMETRY_SINK", "none")
    monkeypatch.delenv("VIDEO_LIBRARY_DB_PATH", raising=False)
    monkeypatch.delenv("VIDEO_LIBRARY_LOG_DIR", raising=False)


@pytest.fixture
def client(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    fake_fetcher: FakeMetadataFetcher,
) -> Iterator[TestClient]:
    configure_env(tmp_path / "runtime-data", monkeypatch)
    reset_cached_dependencies()

    app = create_app()
    app.dependency_overrides[get_metadata_fetcher] = lambda: fake_fetcher
    with TestClient(app) as test_client:
        yield test_client

    reset_cached_dependencies()


def register_and_login(
    client: TestClient,
    *,
    email: str = "viewer@example.com",
    password: str = "correct horse",
    name: str = "Viewer",
) -> dict[str, str]:
    registered = client.post(
        "/api/register",
        json={"email": email, "password": password, "name": name},
    )
    assert registered.status_code == 200, registered.text
    logged_in = client.post("/api/login", json={"email": email, "password": password})
    assert logged_in.status_code == 200, logged_in.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {logged_in.json()['token']}"}
