from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".video-library"
DEFAULT_PIPED_API_BASE_URL = "https://pipedapi.kavin.rocks"
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("db_path", Path("database.db")),
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = (
    "session_cookie_secure",
    "telemetry_enabled",
)


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{VIDEO_LIBRARY_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


class AppSettings(BaseSettings):
    """
    Runtime configuration, read from `VIDEO_LIBRARY_*` environment variables
    (or a local `.env` file).
    """

    model_config = SettingsConfigDict(
        env_prefix="VIDEO_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for the database and logs.",
    )
    db_path: Path = Field(
        default=_default_in_data_dir(Path("database.db")),
        description=f"SQLite database path. {_data_dir_default_note(Path('database.db'))}",
    )

    # Upstream metadata service.
    piped_api_base_url: str = Field(
        default=DEFAULT_PIPED_API_BASE_URL,
        description="Base URL of the Piped API instance used for metadata and passthroughs.",
    )
    piped_http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for upstream calls. There is no retry.",
    )
    default_trending_region: str = Field(
        default="US",
        description="Region sent to the trending endpoint when the client does not pass one.",
    )

    # Sessions and accounts.
    session_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        ge=60,
        description="Lifetime of a login session.",
    )
    session_cookie_name: str = Field(
        default="video_library_session",
        description="Cookie carrying the session token for browser clients.",
    )
    session_cookie_secure: bool = Field(
        default=False,
        description="Mark the session cookie Secure (enable behind HTTPS).",
    )
    password_hash_iterations: int = Field(
        default=310_000,
        ge=1,
        description="PBKDF2-HMAC-SHA256 iteration count for new password hashes.",
    )
    login_rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Login throttling window size in seconds.",
    )
    login_rate_limit_max_requests: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximum login attempts allowed per client in each window.",
    )

    # Logging.
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for backend log files. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`none` disables sink output."
        ),
    )

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("VIDEO_LIBRARY_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("VIDEO_LIBRARY_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("piped_api_base_url", mode="before")
    @classmethod
    def _normalize_piped_api_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("VIDEO_LIBRARY_PIPED_API_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized.startswith(("http://", "https://")):
            raise ValueError("VIDEO_LIBRARY_PIPED_API_BASE_URL must be an http(s) URL.")
        return normalized

    @field_validator("default_trending_region", "session_cookie_name", mode="before")
    @classmethod
    def _normalize_required_text(cls, value: Any, info: ValidationInfo) -> str:
        env_name = f"VIDEO_LIBRARY_{str(info.field_name).upper()}"
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{env_name} must not be empty.")
        return value.strip()

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name))
        for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings() -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    return _resolve_path_fields(settings)
