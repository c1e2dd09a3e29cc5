from __future__ import annotations

from datetime import UTC, datetime

from video_library.errors import ValidationError


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds")


def require_text(field_name: str, value: str | None) -> str:
    """Reject missing or blank values; the value itself is returned untouched."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value
