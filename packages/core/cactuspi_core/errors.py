"""Error taxonomy for the render-and-display pipeline."""

from __future__ import annotations

from cactuspi_display.models import DeviceError
from cactuspi_renderer.models import AssetResolutionError, RenderError


class ConfigLoadError(RuntimeError):
    """The pub/sub config file is missing or malformed."""


class UnsupportedMessageKind(ValueError):
    """The message name is not one of the kinds the panel can render."""


class MalformedMessageError(ValueError):
    """The message kind is known but its payload or metadata is not."""


# Per-message failures: the orchestrator logs these and waits for the next message.
MESSAGE_ERRORS = (
    UnsupportedMessageKind,
    MalformedMessageError,
    AssetResolutionError,
    RenderError,
    DeviceError,
)

__all__ = [
    "AssetResolutionError",
    "ConfigLoadError",
    "DeviceError",
    "MESSAGE_ERRORS",
    "MalformedMessageError",
    "RenderError",
    "UnsupportedMessageKind",
]
