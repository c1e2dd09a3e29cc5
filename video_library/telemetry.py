from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Literal, Protocol

import structlog

# Attribute keys containing any of these are never written out.
_REDACTED_KEY_PARTS: tuple[str, ...] = (
    "authorization",
    "cookie",
    "email",
    "password",
    "secret",
    "token",
)
_MAX_STRING_LENGTH = 160

TelemetryValue = bool | int | float | str | None


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        ...


class DiscardingSink:
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        return None


class StructlogSink:
    def __init__(self, logger_name: str = "video_library.telemetry") -> None:
        self._logger = structlog.get_logger(logger_name)

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self._logger.info("telemetry", telemetry_event=event_name, **attributes)


@dataclass(frozen=True)
class TelemetryClient:
    enabled: bool
    sink: TelemetrySink

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls(enabled=False, sink=DiscardingSink())

    def emit(self, event_name: str, **attributes: Any) -> None:
        if self.enabled:
            self.sink.emit(event_name=event_name, attributes=sanitize_attributes(attributes))

    @contextmanager
    def timed(self, event_prefix: str, **attributes: Any) -> Iterator[dict[str, Any]]:
        """
        Emit `<prefix>.start`, then `<prefix>.finish` or `<prefix>.error` with `duration_ms`.

        The yielded dict collects outcome attributes (a status code, the failing
        item) that are attached to the closing event.
        """
        outcome: dict[str, Any] = {}
        started_at = perf_counter()
        self.emit(f"{event_prefix}.start", **attributes)
        try:
            yield outcome
        except Exception as exc:
            self.emit(
                f"{event_prefix}.error",
                **{
                    **attributes,
                    "error_type": type(exc).__name__,
                    **outcome,
                    "duration_ms": _elapsed_ms(started_at),
                },
            )
            raise
        self.emit(
            f"{event_prefix}.finish",
            **{**attributes, **outcome, "duration_ms": _elapsed_ms(started_at)},
        )


def build_telemetry_client(*, enabled: bool, sink: Literal["none", "log"]) -> TelemetryClient:
    if not enabled or sink == "none":
        return TelemetryClient.disabled()
    return TelemetryClient(enabled=True, sink=StructlogSink())


def sanitize_attributes(attributes: Mapping[str, Any]) -> dict[str, TelemetryValue]:
    sanitized: dict[str, TelemetryValue] = {}
    for raw_key, raw_value in attributes.items():
        key = str(raw_key).strip().lower()
        if not key:
            continue
        if any(part in key for part in _REDACTED_KEY_PARTS):
            sanitized[key] = "[redacted]"
        else:
            sanitized[key] = _scalar(raw_value)
    return sanitized


def _scalar(value: Any) -> TelemetryValue:
    if value is None or isinstance(value, bool | int | float):
        return value
    if not isinstance(value, str):
        return type(value).__name__
    compact = " ".join(value.split())
    if len(compact) > _MAX_STRING_LENGTH:
        return f"{compact[:_MAX_STRING_LENGTH]}..."
    return compact


def _elapsed_ms(started_at: float) -> int:
    return int((perf_counter() - started_at) * 1000)
