"""Read-only store of overlay bitmaps and the text font."""

from __future__ import annotations

import http.client
import logging
import urllib.request
from io import BytesIO
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from PIL import Image, ImageFont, ImageOps

from .models import AssetResolutionError, OverlayAsset, RenderError


_logger = logging.getLogger("cactuspi.renderer")

IMAGE_SUFFIXES = (".png", ".ppm", ".gif", ".bmp")
# OpenWeatherMap draws these icons dark, which vanishes on a black panel.
INVERTED_ICON_SUFFIXES = ("50d.png", "50n.png", "01n.png")


def _flatten(image: Image.Image) -> Image.Image:
    """Composite any alpha onto black, the panel's off colour."""
    image.load()
    if image.mode == "RGB":
        return image.copy()
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


def is_remote_locator(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


class AssetStore:
    """Overlay bitmaps keyed by file stem, plus the raw font bytes.

    Everything is read at startup; afterwards the store is never mutated, so
    renders share it without locking. Remote weather icons are the exception:
    they are fetched per call and never cached.
    """

    def __init__(
        self,
        overlays: Mapping[str, OverlayAsset] | None = None,
        font_bytes: bytes | None = None,
        font_error: str | None = None,
        fetch_timeout_s: float = 10.0,
    ) -> None:
        self._overlays = MappingProxyType(dict(overlays or {}))
        self._font_bytes = font_bytes
        self._font_error = font_error
        self.fetch_timeout_s = fetch_timeout_s

    @classmethod
    def load(cls, asset_dir: Path, font_path: Path | None = None, fetch_timeout_s: float = 10.0) -> "AssetStore":
        overlays: dict[str, OverlayAsset] = {}
        asset_dir = Path(asset_dir)
        if asset_dir.is_dir():
            for path in sorted(asset_dir.iterdir()):
                if path.suffix.lower() not in IMAGE_SUFFIXES:
                    continue
                try:
                    with Image.open(path) as image:
                        overlays[path.stem] = OverlayAsset.from_image(path.stem, _flatten(image))
                except OSError as exc:
                    _logger.warning("skipping unreadable asset %s: %s", path, exc, extra={"event": "asset_skipped"})
        else:
            _logger.warning("asset directory %s not found", asset_dir, extra={"event": "asset_dir_missing"})

        font_bytes = None
        font_error = None
        if font_path is not None:
            try:
                font_bytes = Path(font_path).read_bytes()
            except OSError as exc:
                font_error = f"font {font_path} unreadable: {exc}"
                _logger.error(font_error, extra={"event": "font_unreadable"})

        _logger.info("loaded %d overlay assets", len(overlays), extra={"event": "assets_loaded"})
        return cls(overlays, font_bytes=font_bytes, font_error=font_error, fetch_timeout_s=fetch_timeout_s)

    def keys(self) -> list[str]:
        return sorted(self._overlays.keys())

    def get(self, key: str) -> OverlayAsset:
        try:
            return self._overlays[key]
        except KeyError:
            raise AssetResolutionError(f"Unknown overlay asset: {key}") from None

    def resolve(self, locator: str, size: tuple[int, int] | None = None) -> OverlayAsset:
        if is_remote_locator(locator):
            return self.fetch(locator, size)
        asset = self.get(locator)
        if size is None or (asset.width, asset.height) == size:
            return asset
        return OverlayAsset.from_image(locator, asset.to_image().resize(size, Image.Resampling.LANCZOS))

    def fetch(self, url: str, size: tuple[int, int] | None = None) -> OverlayAsset:
        try:
            with urllib.request.urlopen(url, timeout=self.fetch_timeout_s) as resp:
                payload = resp.read()
            with Image.open(BytesIO(payload)) as downloaded:
                image = _flatten(downloaded)
        except (OSError, ValueError, http.client.HTTPException) as exc:
            raise AssetResolutionError(f"icon fetch failed for {url}: {exc}") from exc

        if size is not None:
            image = image.resize(size, Image.Resampling.LANCZOS)
        if url.endswith(INVERTED_ICON_SUFFIXES):
            image = ImageOps.invert(image)
        return OverlayAsset.from_image(url, image)

    def font(self, size: float) -> ImageFont.FreeTypeFont:
        if self._font_error:
            raise RenderError(self._font_error)
        try:
            if self._font_bytes is None:
                return ImageFont.load_default(size=size)
            return ImageFont.truetype(BytesIO(self._font_bytes), size)
        except (OSError, ValueError) as exc:
            raise RenderError(f"font load failed: {exc}") from exc
