"""Core services: config, logging, message routing and the display pipeline."""

from .config import PubSubConfig, build_matrix_config, load_pubsub_config, read_pubsub_config, redact
from .diagnostics import build_doctor_payload
from .errors import ConfigLoadError, MalformedMessageError, UnsupportedMessageKind
from .pipeline import PipelineOrchestrator, PipelineStatus
from .router import MessageKind, MessageRouter, RenderRequest

__all__ = [
    "ConfigLoadError",
    "MalformedMessageError",
    "MessageKind",
    "MessageRouter",
    "PipelineOrchestrator",
    "PipelineStatus",
    "PubSubConfig",
    "RenderRequest",
    "UnsupportedMessageKind",
    "build_doctor_payload",
    "build_matrix_config",
    "load_pubsub_config",
    "read_pubsub_config",
    "redact",
]
