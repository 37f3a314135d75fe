"""Core functionality for image rendering.

This module provides the core components of the Canvasgen service:

- **CanvasgenConfig / config**: Configuration management using Pydantic Settings
- **FontRegistry**: Read-only list of font files discovered at startup
- **ImageRequest** and friends: Frozen pydantic models describing an image
- **render_image**: Pillow renderer producing JPEG bytes
- **Errors**: ``RequestValidationFailed`` and the ``RenderError`` family

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration, CANVASGEN_ prefix plus ``API_KEY``

2. **Model Layer** (models.py):
   - Request value objects with camelCase JSON aliases

3. **Rendering Layer** (fonts.py, layout.py, renderer.py):
   - Font discovery, word wrapping, drawing and JPEG encoding

Usage Example
-------------
    from canvasgen.core import FontRegistry, ImageRequest, render_image

    registry = FontRegistry.scan("gfonts")
    request = ImageRequest.model_validate({"widthPx": 64, "heightPx": 64, "bgColor": {}})
    jpeg_bytes = render_image(request)
"""

from canvasgen.core.config import CanvasgenConfig, config
from canvasgen.core.errors import (
    BackgroundError,
    CanvasgenError,
    FontLoadError,
    ImageLoadError,
    RenderError,
    RequestValidationFailed,
)
from canvasgen.core.fonts import FontRegistry
from canvasgen.core.models import (
    Color,
    ImageRequest,
    MultiLineText,
    Position,
    Rectangle,
    StyledText,
    TextAlign,
)
from canvasgen.core.renderer import render_image

__all__ = [
    "BackgroundError",
    "CanvasgenConfig",
    "CanvasgenError",
    "Color",
    "FontLoadError",
    "FontRegistry",
    "ImageLoadError",
    "ImageRequest",
    "MultiLineText",
    "Position",
    "Rectangle",
    "RenderError",
    "RequestValidationFailed",
    "StyledText",
    "TextAlign",
    "config",
    "render_image",
]
