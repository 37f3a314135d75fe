"""Canvasgen - render JPEG images from declarative JSON descriptions."""

__version__ = "0.1.0"

from canvasgen.core.config import CanvasgenConfig, config
from canvasgen.core.fonts import FontRegistry
from canvasgen.core.renderer import render_image

__all__ = [
    "CanvasgenConfig",
    "config",
    "FontRegistry",
    "render_image",
]
