"""Frame composer: one text block plus at most one overlay on a fixed canvas."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from PIL import Image, ImageDraw, ImageFont

from cactuspi_display.models import Frame

from .assets import AssetStore
from .layouts import CANVAS_SIZE
from .models import Box, OverlayAsset, RenderError, TextLayoutSpec


class FrameCompositor:
    """Draws text and overlay into disjoint rectangles with replace semantics."""

    def __init__(self, assets: AssetStore, canvas_size: tuple[int, int] = CANVAS_SIZE) -> None:
        self.assets = assets
        self.canvas_size = canvas_size

    @staticmethod
    def regions(
        canvas_size: tuple[int, int],
        overlay: OverlayAsset | None = None,
        overlay_box: Box | None = None,
    ) -> tuple[Box | None, Box]:
        """Return ``(overlay_box, text_box)``; the text gets the wider side of the overlay strip."""
        width, height = canvas_size
        if overlay is None:
            return None, (0, 0, width, height)

        box = overlay_box or (0, 0, min(overlay.width, width), height)
        x0, _, x1, _ = box
        if width - x1 >= x0:
            return box, (x1, 0, width, height)
        return box, (0, 0, x0, height)

    def compose(
        self,
        spec: TextLayoutSpec,
        lines: Sequence[str],
        overlay: OverlayAsset | None = None,
        canvas_size: tuple[int, int] | None = None,
        overlay_box: Box | None = None,
    ) -> Frame:
        size = canvas_size or self.canvas_size
        font = self.assets.font(spec.font_size)
        overlay_rect, text_rect = self.regions(size, overlay, overlay_box)

        canvas = Image.new("RGB", size, spec.background)
        text_size = (text_rect[2] - text_rect[0], text_rect[3] - text_rect[1])
        canvas.paste(self.render_text(spec, lines, font, text_size), text_rect[:2])

        if overlay is not None and overlay_rect is not None:
            canvas.paste(self._fit_overlay(overlay, overlay_rect, spec.background), overlay_rect[:2])
        return Frame.from_image(canvas)

    @staticmethod
    def render_text(
        spec: TextLayoutSpec,
        lines: Sequence[str],
        font: ImageFont.FreeTypeFont,
        size: tuple[int, int],
    ) -> Image.Image:
        region = Image.new("RGB", size, spec.background)
        draw = ImageDraw.Draw(region)
        x, y = spec.origin
        baseline = y + spec.font_size
        for line in lines:
            try:
                draw.text((x, baseline), line, font=font, fill=spec.foreground, anchor="ls")
            except (OSError, ValueError, UnicodeError) as exc:
                raise RenderError(f"could not draw {line!r}: {exc}") from exc
            baseline += spec.font_size * spec.spacing
        return region

    @staticmethod
    def _fit_overlay(overlay: OverlayAsset, box: Box, background: tuple[int, int, int]) -> Image.Image:
        box_w, box_h = box[2] - box[0], box[3] - box[1]
        tile = Image.new("RGB", (box_w, box_h), background)
        source = overlay.to_image().crop((0, 0, min(overlay.width, box_w), min(overlay.height, box_h)))
        tile.paste(source, (0, 0))
        return tile


def save_frame(frame: Frame, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_image().save(path, format="PNG")
    return path
