from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from video_library.config import AppSettings, load_settings
from video_library.logging_config import (
    LOG_FILE_NAME,
    _stream_supports_color,  # pyright: ignore[reportPrivateUsage]
    configure_application_logging,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "VIDEO_LIBRARY_DATA_DIR",
        "VIDEO_LIBRARY_DB_PATH",
        "VIDEO_LIBRARY_LOG_DIR",
        "VIDEO_LIBRARY_PIPED_API_BASE_URL",
        "VIDEO_LIBRARY_SESSION_COOKIE_SECURE",
        "VIDEO_LIBRARY_TELEMETRY_ENABLED",
        "VIDEO_LIBRARY_TELEMETRY_SINK",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_settings_derives_paths_from_data_dir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("VIDEO_LIBRARY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("VIDEO_LIBRARY_PIPED_API_BASE_URL", " https://piped.example/ ")
    monkeypatch.setenv("VIDEO_LIBRARY_LOGIN_RATE_LIMIT_MAX_REQUESTS", "5")
    monkeypatch.setenv("VIDEO_LIBRARY_TELEMETRY_SINK", " LOG ")

    settings = load_settings()

    assert settings.data_dir == (tmp_path / "data").resolve()
    assert settings.db_path == (tmp_path / "data" / "database.db").resolve()
    assert settings.log_dir == (tmp_path / "data" / "logs").resolve()
    assert settings.piped_api_base_url == "https://piped.example"
    assert settings.login_rate_limit_max_requests == 5
    assert settings.telemetry_sink == "log"


def test_explicit_db_path_is_kept(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIDEO_LIBRARY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("VIDEO_LIBRARY_DB_PATH", str(tmp_path / "elsewhere" / "library.db"))

    settings = load_settings()

    assert settings.db_path == (tmp_path / "elsewhere" / "library.db").resolve()
    assert settings.log_dir == (tmp_path / "data" / "logs").resolve()


def test_boolean_settings_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIDEO_LIBRARY_SESSION_COOKIE_SECURE", "yes")
    monkeypatch.setenv("VIDEO_LIBRARY_TELEMETRY_ENABLED", "off")
    parsed = load_settings()
    assert parsed.session_cookie_secure is True
    assert parsed.telemetry_enabled is False

    monkeypatch.setenv("VIDEO_LIBRARY_SESSION_COOKIE_SECURE", "maybe")
    monkeypatch.setenv("VIDEO_LIBRARY_TELEMETRY_ENABLED", "maybe")
    fallback = load_settings()
    assert fallback.session_cookie_secure is False
    assert fallback.telemetry_enabled is True


def test_load_settings_rejects_non_http_upstream(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIDEO_LIBRARY_PIPED_API_BASE_URL", "ftp://piped.example")

    with pytest.raises(ValueError, match="VIDEO_LIBRARY_PIPED_API_BASE_URL"):
        load_settings()


def test_load_settings_rejects_unknown_telemetry_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIDEO_LIBRARY_TELEMETRY_SINK", "otlp")

    with pytest.raises(ValueError, match="VIDEO_LIBRARY_TELEMETRY_SINK"):
        load_settings()


def test_configure_application_logging_writes_json_file(tmp_path: Path) -> None:
    settings = AppSettings(
        data_dir=tmp_path,
        db_path=tmp_path / "state.db",
        log_dir=tmp_path / "logs",
        log_level="WARNING",
    )

    log_file = configure_application_logging(settings)
    logging.getLogger("video_library.test").info("runtime-log-test")
    structlog.get_logger("video_library.telemetry").info(
        "telemetry",
        telemetry_event="test.event",
    )

    app_logger = logging.getLogger("video_library")
    assert len(app_logger.handlers) == 2
    assert {handler.level for handler in app_logger.handlers} == {logging.WARNING, logging.DEBUG}
    for handler in app_logger.handlers:
        handler.flush()

    assert log_file == settings.log_dir / LOG_FILE_NAME
    events = [
        json.loads(line)
        for line in log_file.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]
    runtime_event = next(event for event in events if event.get("event") == "runtime-log-test")
    assert runtime_event["logger"] == "video_library.test"
    assert runtime_event["level"] == "info"
    assert logging.getLogger("httpx").level == logging.WARNING
    telemetry_event = next(
        event for event in events if event.get("telemetry_event") == "test.event"
    )
    assert telemetry_event["logger"] == "video_library.telemetry"


def test_stream_supports_color_detects_tty() -> None:
    class _TTY:
        def isatty(self) -> bool:
            return True

    class _Pipe:
        def isatty(self) -> bool:
            return False

    class _Closed:
        def isatty(self) -> bool:
            raise ValueError("closed")

    assert _stream_supports_color(_TTY()) is True
    assert _stream_supports_color(_Pipe()) is False
    assert _stream_supports_color(_Closed()) is False
    assert _stream_supports_color(object()) is False
