from __future__ import annotations


class VideoLibraryError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(VideoLibraryError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidCredentialsError(VideoLibraryError):
    status_code = 401
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class ValidationError(VideoLibraryError):
    status_code = 400
    code = "validation_error"


class DuplicateLikeError(VideoLibraryError):
    status_code = 400
    code = "duplicate_like"

    def __init__(self, video_id: str) -> None:
        super().__init__("Video already liked")
        self.video_id = video_id


class EmailAlreadyExistsError(VideoLibraryError):
    status_code = 400
    code = "email_exists"

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class NotFoundError(VideoLibraryError):
    status_code = 404
    code = "not_found"


class RateLimitedError(VideoLibraryError):
    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, *, retry_after_seconds: int) -> None:
        super().__init__(message)
        self.retry_after_seconds = max(1, retry_after_seconds)


class StoreError(VideoLibraryError):
    status_code = 500
    code = "store_error"

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__("Database error")
        self.operation = operation
        self.reason = reason


class UpstreamError(VideoLibraryError):
    status_code = 500
    code = "upstream_error"


class MetadataFetchError(UpstreamError):
    def __init__(self, video_id: str, reason: str) -> None:
        super().__init__(f"Failed to fetch metadata for {video_id}: {reason}")
        self.video_id = video_id
        self.reason = reason


class EnrichmentFailedError(VideoLibraryError):
    status_code = 500
    code = "enrichment_failed"

    def __init__(self, message: str = "Failed to fetch video details") -> None:
        super().__init__(message)
