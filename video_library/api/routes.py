from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response
from structlog.contextvars import bind_contextvars, reset_contextvars

from video_library.dependencies import (
    get_account_service,
    get_library_aggregator,
    get_piped_client,
    get_settings,
    get_video_actions,
    require_user,
)
from video_library.errors import ValidationError
from video_library.models.account_contracts import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserProfile,
)
from video_library.models.library_contracts import (
    ErrorResponse,
    LikedVideo,
    LikeVideoRequest,
    LikeVideoResponse,
    SavedVideo,
    SaveVideoRequest,
    SaveVideoResponse,
    SuccessResponse,
)
from video_library.services.account_service import AccountService
from video_library.services.identity import AuthenticatedUser
from video_library.services.library_aggregator import LibraryAggregator
from video_library.services.piped_client import PipedClient
from video_library.services.video_actions import VideoActions

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(prefix="/api", responses=_ERROR_RESPONSES)

CurrentUser = Annotated[AuthenticatedUser, Depends(require_user)]
Actions = Annotated[VideoActions, Depends(get_video_actions)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
Upstream = Annotated[PipedClient, Depends(get_piped_client)]


@router.post(
    "/register",
    response_model=RegisterResponse,
    tags=["accounts"],
    operation_id="register",
)
def register(request: RegisterRequest, accounts: Accounts) -> RegisterResponse:
    user = accounts.register(email=request.email, password=request.password, name=request.name)
    return RegisterResponse(user_id=user.id)


@router.post(
    "/login",
    response_model=LoginResponse,
    tags=["accounts"],
    operation_id="login",
    responses={429: {"model": ErrorResponse}},
)
def login(
    body: LoginRequest,
    http_request: Request,
    response: Response,
    accounts: Accounts,
) -> LoginResponse:
    client_key = http_request.client.host if http_request.client is not None else "unknown"
    result = accounts.login(email=body.email, password=body.password, client_key=client_key)

    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        result.token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(user=UserProfile.from_record(result.user), token=result.token)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    tags=["accounts"],
    operation_id="logout",
)
def logout(user: CurrentUser, response: Response, accounts: Accounts) -> SuccessResponse:
    accounts.logout(user)
    response.delete_cookie(get_settings().session_cookie_name)
    return SuccessResponse()


@router.get("/user", response_model=UserProfile, tags=["accounts"], operation_id="current_user")
def current_user(user: CurrentUser, accounts: Accounts) -> UserProfile:
    return UserProfile.from_record(accounts.current_user(user))


@router.post(
    "/save-video",
    response_model=SaveVideoResponse,
    tags=["library"],
    operation_id="save_video",
)
def save_video(user: CurrentUser, request: SaveVideoRequest, actions: Actions) -> SaveVideoResponse:
    record = actions.save_video(
        user,
        video_id=request.video_id,
        title=request.title,
        thumbnail=request.thumbnail,
        channel=request.channel,
    )
    return SaveVideoResponse(saved_id=record.id)


@router.post(
    "/like-video",
    response_model=LikeVideoResponse,
    tags=["library"],
    operation_id="like_video",
)
def like_video(user: CurrentUser, request: LikeVideoRequest, actions: Actions) -> LikeVideoResponse:
    record = actions.like_video(user, video_id=request.video_id)
    return LikeVideoResponse(like_id=record.id)


@router.delete(
    "/unlike-video/{video_id}",
    response_model=SuccessResponse,
    tags=["library"],
    operation_id="unlike_video",
)
def unlike_video(user: CurrentUser, video_id: str, actions: Actions) -> SuccessResponse:
    actions.unlike_video(user, video_id=video_id)
    return SuccessResponse()


@router.delete(
    "/unsave-video/{video_id}",
    response_model=SuccessResponse,
    tags=["library"],
    operation_id="unsave_video",
)
def unsave_video(user: CurrentUser, video_id: str, actions: Actions) -> SuccessResponse:
    actions.unsave_video(user, video_id=video_id)
    return SuccessResponse()


@router.get(
    "/saved-videos",
    response_model=list[SavedVideo],
    tags=["library"],
    operation_id="list_saved_videos",
)
def list_saved_videos(user: CurrentUser, actions: Actions) -> list[SavedVideo]:
    return [SavedVideo.from_record(record) for record in actions.list_saved(user)]


@router.get(
    "/liked-videos",
    response_model=list[LikedVideo],
    tags=["library"],
    operation_id="list_liked_videos",
)
async def list_liked_videos(
    user: CurrentUser,
    aggregator: Annotated[LibraryAggregator, Depends(get_library_aggregator)],
) -> list[LikedVideo]:
    context_tokens = bind_contextvars(library_user_id=user.user_id)
    try:
        videos = await aggregator.list_liked_enriched(user)
    finally:
        reset_contextvars(**context_tokens)
    return [LikedVideo.from_enriched(video) for video in videos]


@router.get("/trending", response_model=None, tags=["upstream"], operation_id="trending")
async def trending(
    upstream: Upstream,
    region: Annotated[str | None, Query(max_length=8)] = None,
) -> Any:
    resolved_region = region.strip() if region and region.strip() else None
    return await upstream.trending(region=resolved_region or get_settings().default_trending_region)


@router.get("/search", response_model=None, tags=["upstream"], operation_id="search")
async def search(
    upstream: Upstream,
    q: Annotated[str | None, Query(max_length=500)] = None,
    search_filter: Annotated[str | None, Query(alias="filter", max_length=64)] = None,
) -> Any:
    if q is None or not q.strip():
        raise ValidationError("Search query is required")
    return await upstream.search(query=q.strip(), search_filter=search_filter)


@router.get(
    "/streams/{video_id}",
    response_model=None,
    tags=["upstream"],
    operation_id="streams",
)
async def streams(video_id: str, upstream: Upstream) -> Any:
    return await upstream.streams(video_id)


@router.get(
    "/comments/{video_id}",
    response_model=None,
    tags=["upstream"],
    operation_id="comments",
)
async def comments(video_id: str, upstream: Upstream) -> Any:
    return await upstream.comments(video_id)
