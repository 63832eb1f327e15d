"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

Color = tuple[int, int, int]
Box = tuple[int, int, int, int]


class RenderError(RuntimeError):
    """Font loading or glyph drawing failed for a single render."""


class AssetResolutionError(LookupError):
    """An overlay bitmap could not be found, fetched or decoded."""


@dataclass(frozen=True)
class TextLayoutSpec:
    font_size: float = 12.0
    spacing: float = 1.0
    origin: tuple[int, int] = (2, 2)
    foreground: Color = (0, 0, 255)
    background: Color = (0, 0, 0)


@dataclass(frozen=True)
class KindLayout:
    name: str
    text: TextLayoutSpec
    overlay_box: Box | None = None
    icon_size: tuple[int, int] | None = None


@dataclass(frozen=True)
class OverlayAsset:
    key: str
    width: int
    height: int
    bytes: bytes

    @classmethod
    def from_image(cls, key: str, image: Image.Image) -> "OverlayAsset":
        if image.mode != "RGB":
            image = image.convert("RGB")
        return cls(key=key, width=image.width, height=image.height, bytes=image.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGB", (self.width, self.height), self.bytes)
