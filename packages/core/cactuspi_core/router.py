"""Message routing: inbound pub/sub message to a renderable request."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from cactuspi_display.models import ROTATIONS

from .errors import MalformedMessageError, UnsupportedMessageKind


DEFAULT_DURATION_S = 5.0

TRANSIT_OVERLAYS = {1: "green-light", 2: "yellow-light"}
TRANSIT_FALLBACK_OVERLAY = "red-light"
HEALTH_OVERLAY = "thermometer"
HEALTH_FIELD_COUNT = 4


class MessageKind(str, Enum):
    TRANSIT = "subway"
    WEATHER = "weather"
    HEALTH = "covid"

    @classmethod
    def parse(cls, name: Any) -> "MessageKind":
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedMessageKind(f"message not supported: {name!r}") from None


@dataclass(frozen=True)
class RenderRequest:
    kind: MessageKind
    lines: tuple[str, ...]
    overlay_key: str | None = None
    priority: int = 0
    rotation: int = 0
    display_duration: float = DEFAULT_DURATION_S


class MessageRouter:
    """Classifies messages by kind; each kind reads ``priority`` its own way.

    Transit treats it as a 1/2/3 delay ordinal, weather as an icon locator,
    and health ignores it.
    """

    def __init__(self, default_duration: float = DEFAULT_DURATION_S, rotation: int = 0) -> None:
        if rotation not in ROTATIONS:
            raise ValueError(f"Unsupported rotation: {rotation}")
        self.default_duration = default_duration
        self.rotation = rotation
        self._routes: dict[MessageKind, Callable[[Mapping[str, Any], str, float], RenderRequest]] = {
            MessageKind.TRANSIT: self._route_transit,
            MessageKind.WEATHER: self._route_weather,
            MessageKind.HEALTH: self._route_health,
        }

    def route(self, kind: Any, metadata: Mapping[str, Any] | None, payload: Any) -> RenderRequest:
        message_kind = MessageKind.parse(kind)
        metadata = metadata or {}
        text = "" if payload is None else str(payload)
        return self._routes[message_kind](metadata, text, self._duration(metadata))

    def _duration(self, metadata: Mapping[str, Any]) -> float:
        value = metadata.get("duration")
        if value is None:
            return self.default_duration
        try:
            seconds = float(value)
        except (TypeError, ValueError, OverflowError):
            raise MalformedMessageError(f"duration must be numeric, got {value!r}") from None
        if not math.isfinite(seconds):
            raise MalformedMessageError(f"duration must be finite, got {value!r}")
        return seconds if seconds > 0 else self.default_duration

    def _route_transit(self, metadata: Mapping[str, Any], text: str, duration: float) -> RenderRequest:
        value = metadata.get("priority")
        if value is None:
            priority = 3
        else:
            try:
                priority = int(float(value))
            except (TypeError, ValueError, OverflowError):
                raise MalformedMessageError(f"subway priority must be numeric, got {value!r}") from None
        return RenderRequest(
            kind=MessageKind.TRANSIT,
            lines=tuple(text.split("\n")),
            overlay_key=TRANSIT_OVERLAYS.get(priority, TRANSIT_FALLBACK_OVERLAY),
            priority=priority,
            rotation=self.rotation,
            display_duration=duration,
        )

    def _route_weather(self, metadata: Mapping[str, Any], text: str, duration: float) -> RenderRequest:
        locator = metadata.get("priority")
        return RenderRequest(
            kind=MessageKind.WEATHER,
            lines=tuple(text.split("\n")),
            overlay_key=locator if isinstance(locator, str) and locator else None,
            rotation=self.rotation,
            display_duration=duration,
        )

    def _route_health(self, metadata: Mapping[str, Any], text: str, duration: float) -> RenderRequest:
        fields = [f.strip() for f in text.split(",")]
        if len(fields) != HEALTH_FIELD_COUNT:
            raise MalformedMessageError(f"covid payload needs {HEALTH_FIELD_COUNT} fields, got {len(fields)}")
        # Fields 2 and 0 carry the US and NY figures.
        return RenderRequest(
            kind=MessageKind.HEALTH,
            lines=(f"US:{fields[2]}", f"NY:{fields[0]}"),
            overlay_key=HEALTH_OVERLAY,
            rotation=self.rotation,
            display_duration=duration,
        )
