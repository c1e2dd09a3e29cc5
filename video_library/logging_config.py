from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import Processor

from video_library.config import AppSettings

LOG_FILE_NAME = "video-library.log"
APP_LOGGER_NAME = "video_library"

# httpx logs every upstream request at INFO; the fan-out makes that one line per liked video.
_QUIET_LIBRARY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


def configure_application_logging(settings: AppSettings) -> Path:
    """
    Route the `video_library` logger tree to a console handler at the configured
    level and a JSON-lines file at DEBUG. Safe to call more than once.
    """
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_dir / LOG_FILE_NAME

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(logging.DEBUG)
    app_logger.propagate = False
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console = sys.stdout
    app_logger.addHandler(
        _handler(
            logging.StreamHandler(stream=console),
            level=_resolve_log_level(settings.log_level),
            renderer=structlog.dev.ConsoleRenderer(colors=_stream_supports_color(console)),
        )
    )
    app_logger.addHandler(
        _handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            level=logging.DEBUG,
            renderer=structlog.processors.JSONRenderer(sort_keys=True),
            extra_processors=[structlog.processors.format_exc_info],
        )
    )

    for name in _QUIET_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app_logger.info(
        "logging configured console_level=%s path=%s",
        settings.log_level.upper(),
        log_file,
    )
    return log_file


def _handler(
    handler: logging.Handler,
    *,
    level: int,
    renderer: Processor,
    extra_processors: list[Processor] | None = None,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            ],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *(extra_processors or []),
                renderer,
            ],
        )
    )
    return handler


def _resolve_log_level(raw_level: str) -> int:
    resolved = logging.getLevelName(raw_level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _stream_supports_color(stream: TextIO | object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if not callable(isatty):
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False
