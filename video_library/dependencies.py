from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from video_library.config import AppSettings, load_settings
from video_library.repositories.database import Database
from video_library.repositories.liked_video_repository import LikedVideoRepository
from video_library.repositories.saved_video_repository import SavedVideoRepository
from video_library.repositories.session_repository import SessionRepository
from video_library.repositories.user_repository import UserRepository
from video_library.services.account_service import AccountService
from video_library.services.identity import AuthenticatedUser, IdentityGate, extract_session_token
from video_library.services.library_aggregator import LibraryAggregator
from video_library.services.piped_client import MetadataFetcher, PipedClient
from video_library.services.rate_limiter import SlidingWindowRateLimiter
from video_library.services.video_actions import VideoActions
from video_library.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_database() -> Database:
    database = Database(get_settings().db_path)
    database.initialize()
    return database


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


@lru_cache(maxsize=1)
def get_piped_client() -> PipedClient:
    settings = get_settings()
    return PipedClient(
        base_url=settings.piped_api_base_url,
        timeout_seconds=settings.piped_http_timeout_seconds,
    )


def get_metadata_fetcher() -> MetadataFetcher:
    return get_piped_client()


@lru_cache(maxsize=1)
def get_identity_gate() -> IdentityGate:
    return IdentityGate(SessionRepository(get_database()))


@lru_cache(maxsize=1)
def get_account_service() -> AccountService:
    settings = get_settings()
    database = get_database()
    return AccountService(
        user_repository=UserRepository(database),
        session_repository=SessionRepository(database),
        login_rate_limiter=SlidingWindowRateLimiter(
            max_requests=settings.login_rate_limit_max_requests,
            window_seconds=settings.login_rate_limit_window_seconds,
        ),
        password_hash_iterations=settings.password_hash_iterations,
        session_ttl_seconds=settings.session_ttl_seconds,
    )


@lru_cache(maxsize=1)
def get_video_actions() -> VideoActions:
    database = get_database()
    return VideoActions(
        saved_repository=SavedVideoRepository(database),
        liked_repository=LikedVideoRepository(database),
        telemetry=get_telemetry(),
    )


def get_library_aggregator(
    metadata_fetcher: Annotated[MetadataFetcher, Depends(get_metadata_fetcher)],
) -> LibraryAggregator:
    return LibraryAggregator(
        liked_repository=LikedVideoRepository(get_database()),
        metadata_fetcher=metadata_fetcher,
        telemetry=get_telemetry(),
    )


def require_user(
    request: Request,
    gate: Annotated[IdentityGate, Depends(get_identity_gate)],
) -> AuthenticatedUser:
    token = extract_session_token(
        authorization_header=request.headers.get("Authorization"),
        session_cookie=request.cookies.get(get_settings().session_cookie_name),
    )
    return gate.authenticate(token)


async def close_cached_clients() -> None:
    if get_piped_client.cache_info().currsize:
        await get_piped_client().aclose()
    get_piped_client.cache_clear()


def reset_cached_dependencies() -> None:
    get_video_actions.cache_clear()
    get_account_service.cache_clear()
    get_identity_gate.cache_clear()
    get_piped_client.cache_clear()
    get_telemetry.cache_clear()
    get_database.cache_clear()
    get_settings.cache_clear()
