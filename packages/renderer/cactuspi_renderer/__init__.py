"""Renderer package for CactusPi panel frames."""

from .assets import AssetStore
from .compositor import FrameCompositor, save_frame
from .layouts import CANVAS_SIZE, DEFAULT_LAYOUT_NAME, get_layout, list_layouts
from .models import AssetResolutionError, KindLayout, OverlayAsset, RenderError, TextLayoutSpec

__all__ = [
    "CANVAS_SIZE",
    "DEFAULT_LAYOUT_NAME",
    "AssetResolutionError",
    "AssetStore",
    "FrameCompositor",
    "KindLayout",
    "OverlayAsset",
    "RenderError",
    "TextLayoutSpec",
    "get_layout",
    "list_layouts",
    "save_frame",
]
