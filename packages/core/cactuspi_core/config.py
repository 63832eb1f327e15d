"""Pub/sub key file and panel settings: schema, load helpers, normalisation."""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from cactuspi_display.models import ROTATIONS, MatrixConfig

from .errors import ConfigLoadError
from .logging_setup import get_logger


DEFAULT_CONFIG_PATH = Path("configs") / "pubnub.json"
DEFAULT_CHANNELS = ("cactuspi",)

_SECRET_RE = re.compile(r"(token|secret|password|publish|apikey|api_key|auth)", re.IGNORECASE)

# JSON file keys (camelCase, shared with the publisher side) to dataclass fields.
_PUBSUB_KEYS = {
    "subscribeKey": "subscribe_key",
    "secretKey": "secret_key",
    "publishKey": "publish_key",
    "channels": "channels",
    "userId": "user_id",
}


@dataclass
class PubSubConfig:
    subscribe_key: str = ""
    secret_key: str = ""
    publish_key: str = ""
    channels: list[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))
    user_id: str = "cactuspi-display"


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k) and v:
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_pubsub(cfg: PubSubConfig) -> None:
    if isinstance(cfg.channels, str):
        cfg.channels = [cfg.channels]
    elif not isinstance(cfg.channels, (list, tuple)):
        cfg.channels = []
    channels = [c for c in (cfg.channels or []) if isinstance(c, str) and c]
    cfg.channels = channels or list(DEFAULT_CHANNELS)
    for name in ("subscribe_key", "secret_key", "publish_key", "user_id"):
        value = getattr(cfg, name)
        setattr(cfg, name, "" if value is None else str(value))
    if not cfg.user_id:
        cfg.user_id = "cactuspi-display"


def read_pubsub_config(path: Path) -> PubSubConfig:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigLoadError(f"cannot load {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"cannot load {path}: expected a JSON object")

    cfg = _merge(PubSubConfig, {_PUBSUB_KEYS[k]: v for k, v in raw.items() if k in _PUBSUB_KEYS})
    _normalize_pubsub(cfg)
    return cfg


def load_pubsub_config(path: Path | None = None) -> PubSubConfig:
    """Load the key file; a missing or broken file is logged and yields empty keys."""
    logger = get_logger("config")
    path = path or DEFAULT_CONFIG_PATH
    try:
        cfg = read_pubsub_config(path)
    except ConfigLoadError as exc:
        logger.warning(str(exc), extra={"event": "config_load_failed"})
        return PubSubConfig()

    logger.info(
        "pubsub config loaded %s",
        json.dumps(redact(asdict(cfg)), sort_keys=True),
        extra={"event": "config_loaded"},
    )
    return cfg


def _normalize_matrix(cfg: MatrixConfig) -> None:
    cfg.brightness = max(0, min(100, int(cfg.brightness)))
    cfg.pwm_bits = max(1, min(11, int(cfg.pwm_bits)))
    cfg.pwm_lsb_nanoseconds = max(1, int(cfg.pwm_lsb_nanoseconds))
    cfg.rows = max(1, int(cfg.rows))
    cfg.cols = max(1, int(cfg.cols))
    cfg.parallel = max(1, int(cfg.parallel))
    cfg.chain_length = max(1, int(cfg.chain_length))
    rotation = int(cfg.rotation) % 360
    cfg.rotation = rotation if rotation in ROTATIONS else 0


def build_matrix_config(**values: Any) -> MatrixConfig:
    cfg = _merge(MatrixConfig, values)
    _normalize_matrix(cfg)
    return cfg
