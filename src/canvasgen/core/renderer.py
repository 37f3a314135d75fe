"""Pillow-based renderer that turns an :class:`ImageRequest` into a JPEG.

Drawing order is fixed and matters, since later elements paint over
earlier ones:

1. **Background** - an image from disk (pasted at the origin, cropped to the
   canvas, never scaled) or a solid colour.  One of the two is required.
2. **Single-line texts** - each anchored by its top-left corner.
3. **Rectangles** - filled, with a 5 px stroke centred on the edge, so the
   painted area extends half a stroke beyond the rectangle.
4. **Multi-line texts** - word-wrapped to ``wrapWidthPx``.  The text box is
   always anchored at its top-left corner; ``align`` only moves each line
   inside the box.

The background is composed on a transparent RGBA canvas and then flattened
over opaque black, so uncovered or translucent background areas darken.
Everything after it is drawn onto that RGB canvas with source-over
blending, so colours with ``a < 255`` mix with what is underneath.

Every failure raises a :class:`~canvasgen.core.errors.RenderError` subclass
and nothing is returned, so callers never see a partial image.

Usage
-----
::

    from canvasgen.core.models import ImageRequest
    from canvasgen.core.renderer import render_image

    request = ImageRequest.model_validate(
        {"widthPx": 100, "heightPx": 50, "bgColor": {"r": 255}, "quality": 90}
    )
    jpeg_bytes = render_image(request)
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageDraw, ImageFont

from canvasgen.core.config import config
from canvasgen.core.errors import BackgroundError, FontLoadError, ImageLoadError
from canvasgen.core.layout import aligned_origin, line_advance, wrap_text
from canvasgen.core.models import ImageRequest, MultiLineText, Rectangle, StyledText

logger = logging.getLogger(__name__)

RECTANGLE_STROKE_PX = 5

# Fully transparent black, the initial state of every canvas.
_BLANK = (0, 0, 0, 0)
_OPAQUE_BLACK = (0, 0, 0, 255)


class _FontCache:
    """Per-render font cache so repeated faces are parsed once."""

    def __init__(self) -> None:
        self._fonts: dict[tuple[str, float], ImageFont.FreeTypeFont] = {}

    def get(self, identifier: str, size_px: float) -> ImageFont.FreeTypeFont:
        key = (identifier, size_px)
        font = self._fonts.get(key)
        if font is None:
            font = load_font(identifier, size_px)
            self._fonts[key] = font
        return font


def load_font(identifier: str, size_px: float) -> ImageFont.FreeTypeFont:
    """Load a TrueType font at the given pixel size.

    Raises:
        FontLoadError: If the file is missing or not a parsable font.
    """
    try:
        return ImageFont.truetype(identifier, size_px)
    except (OSError, ValueError) as e:
        raise FontLoadError(f"Failed to load font '{identifier}': {e}") from e


def load_background(path: str) -> Image.Image:
    """Open and fully decode a background image as RGBA.

    Raises:
        ImageLoadError: If the file cannot be read or decoded.
    """
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"Failed to load background image '{path}': {e}") from e


def _draw_background(canvas: Image.Image, request: ImageRequest) -> None:
    if request.bg_img_path:
        background = load_background(request.bg_img_path)
        visible = background.crop(
            (0, 0, min(background.width, canvas.width), min(background.height, canvas.height))
        )
        canvas.alpha_composite(visible, (0, 0))
    elif request.bg_color is not None and not request.bg_color.is_zero:
        # A colour background replaces the canvas outright, like a clear.
        canvas.paste(request.bg_color.as_rgba(), (0, 0, canvas.width, canvas.height))
    else:
        raise BackgroundError("no background specified")


def _draw_single_line(draw: ImageDraw.ImageDraw, text: StyledText, fonts: _FontCache) -> None:
    font = fonts.get(text.font, text.size_px)
    draw.text(
        (text.position.x, text.position.y),
        text.text,
        font=font,
        fill=text.color.as_rgba(),
        anchor="la",
    )


def _draw_rectangle(draw: ImageDraw.ImageDraw, rect: Rectangle) -> None:
    x0, x1 = sorted((rect.position.x, rect.position.x + rect.width_px))
    y0, y1 = sorted((rect.position.y, rect.position.y + rect.height_px))
    half = RECTANGLE_STROKE_PX / 2
    color = rect.color.as_rgba()
    draw.rectangle(
        (x0 - half, y0 - half, x1 + half, y1 + half),
        fill=color,
        outline=color,
        width=RECTANGLE_STROKE_PX,
    )


def _draw_multi_line(draw: ImageDraw.ImageDraw, text: MultiLineText, fonts: _FontCache) -> None:
    style = text.styled_text
    font = fonts.get(style.font, style.size_px)
    x, anchor = aligned_origin(text.align, style.position.x, text.wrap_width_px)
    step = line_advance(style.size_px, text.line_spacing)
    fill = style.color.as_rgba()

    y = style.position.y
    for line in wrap_text(style.text, font, text.wrap_width_px):
        if line:
            draw.text((x, y), line, font=font, fill=fill, anchor=anchor)
        y += step


def _resolve_quality(request: ImageRequest, default_quality: int | None) -> int:
    if request.quality is not None:
        return request.quality
    return default_quality if default_quality is not None else config.default_quality


def _flatten(layer: Image.Image) -> Image.Image:
    """Composite an RGBA layer over opaque black and return it as RGB."""
    flat = Image.new("RGBA", layer.size, _OPAQUE_BLACK)
    flat.alpha_composite(layer)
    return flat.convert("RGB")


def render_canvas(request: ImageRequest) -> Image.Image:
    """Draw every element of *request* and return the RGB canvas.

    Raises:
        RenderError: On any background, font or image failure.
    """
    background = Image.new("RGBA", (request.width_px, request.height_px), _BLANK)
    _draw_background(background, request)
    canvas = _flatten(background)

    # An "RGBA" draw on an RGB image blends each fill using its alpha.
    draw = ImageDraw.Draw(canvas, "RGBA")
    fonts = _FontCache()

    for text in request.single_line_texts:
        _draw_single_line(draw, text, fonts)
    for rect in request.rectangles:
        _draw_rectangle(draw, rect)
    for text in request.multi_line_texts:
        _draw_multi_line(draw, text, fonts)

    return canvas


def encode_jpeg(canvas: Image.Image, quality: int) -> bytes:
    """Flatten *canvas* to RGB and encode it as JPEG."""
    buffer = io.BytesIO()
    canvas.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def render_image(request: ImageRequest, *, default_quality: int | None = None) -> bytes:
    """Render *request* and return the encoded JPEG bytes.

    Args:
        request: Validated image description.
        default_quality: JPEG quality used when ``request.quality`` is unset.
            Falls back to ``config.default_quality``.

    Returns:
        The JPEG file contents.

    Raises:
        RenderError: If any step fails.  No partial output is produced.
    """
    label = request.name or "unnamed"
    logger.info(f"Rendering '{label}' ({request.width_px}x{request.height_px})")

    canvas = render_canvas(request)
    quality = _resolve_quality(request, default_quality)
    data = encode_jpeg(canvas, quality)

    logger.info(f"Rendered '{label}': {len(data)} bytes at quality {quality}")
    return data


