"""Built-in per-kind layouts for the 64x32 panel."""

from __future__ import annotations

from .models import KindLayout, TextLayoutSpec

CANVAS_SIZE = (64, 32)
DEFAULT_LAYOUT_NAME = "subway"

LAYOUTS: dict[str, KindLayout] = {
    "subway": KindLayout(
        name="subway",
        text=TextLayoutSpec(font_size=12.0, origin=(2, 2)),
        overlay_box=(0, 0, 12, 32),
    ),
    "weather": KindLayout(
        name="weather",
        text=TextLayoutSpec(font_size=11.0, origin=(1, 2)),
        overlay_box=(30, 0, 64, 32),
        icon_size=(36, 36),
    ),
    "covid": KindLayout(
        name="covid",
        text=TextLayoutSpec(font_size=9.5, origin=(2, 2)),
        overlay_box=(0, 0, 10, 32),
    ),
}


def list_layouts() -> list[str]:
    return sorted(LAYOUTS.keys())


def get_layout(name: str | None) -> KindLayout:
    if not name:
        return LAYOUTS[DEFAULT_LAYOUT_NAME]
    return LAYOUTS.get(name, LAYOUTS[DEFAULT_LAYOUT_NAME])
