"""Doctor payload: redacted config, panel settings and asset inventory."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from cactuspi_display import MatrixConfig, rgbmatrix_available
from cactuspi_renderer import AssetStore, list_layouts

from .config import PubSubConfig, redact


def build_doctor_payload(cfg: PubSubConfig, matrix: MatrixConfig, assets: AssetStore) -> dict[str, Any]:
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "pubsub": redact(asdict(cfg)),
        "matrix": asdict(matrix),
        "panel_size": [matrix.width, matrix.height],
        "rgbmatrix_available": rgbmatrix_available(),
        "assets": assets.keys(),
        "layouts": list_layouts(),
    }
