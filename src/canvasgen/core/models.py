"""Pydantic models describing an image to render.

These models define the JSON schema of ``POST /generate``.  FastAPI uses them
for request validation and OpenAPI documentation.  Field names on the wire
are camelCase; attribute names in Python are snake_case.

All models are frozen: a request is parsed once and only read afterwards.

Models
------
Color
    RGBA colour, 8 bits per channel, opaque black by default.
Position
    Canvas coordinates in pixels (floats).
StyledText
    A single line of text with font, size, colour and position.
MultiLineText
    A :class:`StyledText` wrapped to a fixed width.
Rectangle
    A filled rectangle.
ImageRequest
    The full description of one image.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_QUALITY = 1
MAX_QUALITY = 100


class _FrozenModel(BaseModel):
    # NaN and Infinity parse from JSON but cannot be drawn.
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)


class Color(_FrozenModel):
    """RGBA colour.

    Attributes:
        r: Red channel (0-255).
        g: Green channel (0-255).
        b: Blue channel (0-255).
        a: Alpha channel (0-255), 255 is opaque.
    """

    r: int = Field(default=0, ge=0, le=255)
    g: int = Field(default=0, ge=0, le=255)
    b: int = Field(default=0, ge=0, le=255)
    a: int = Field(default=255, ge=0, le=255)

    @property
    def is_zero(self) -> bool:
        """``True`` when every channel, alpha included, is 0."""
        return self.r == 0 and self.g == 0 and self.b == 0 and self.a == 0

    def as_rgba(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


class Position(_FrozenModel):
    """Point on the canvas, origin at the top-left corner."""

    x: float = 0.0
    y: float = 0.0


class TextAlign(str, Enum):
    """Justification of wrapped lines inside their box."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class StyledText(_FrozenModel):
    """A single line of text.

    Attributes:
        text: The string to draw.
        color: Fill colour.
        font: Font identifier, as listed by ``GET /font-faces``.
        size_px: Font size in pixels.
        position: Top-left anchor of the text.
    """

    text: str = ""
    color: Color = Field(default_factory=Color)
    font: str = Field(..., description="Font identifier from GET /font-faces.")
    size_px: float = Field(..., alias="sizePx", gt=0, description="Font size in pixels.")
    position: Position = Field(default_factory=Position)


class MultiLineText(_FrozenModel):
    """Text word-wrapped inside a box of fixed width.

    The box is always anchored at ``styled_text.position`` by its top-left
    corner; ``align`` only moves lines within the box.

    Attributes:
        styled_text: Text, font, colour and box position.
        wrap_width_px: Box width; lines wrap before exceeding it.
        line_spacing: Line height as a multiple of the font size.
        align: Line justification inside the box.
    """

    styled_text: StyledText = Field(..., alias="styledText")
    wrap_width_px: float = Field(
        ...,
        alias="wrapWidthPx",
        gt=0,
        description="Maximum line width in pixels before wrapping.",
    )
    line_spacing: float = Field(
        default=1.5,
        alias="lineSpacingPx",
        gt=0,
        description="Line height multiplier (1.0 = font size).",
    )
    align: TextAlign = TextAlign.LEFT


class Rectangle(_FrozenModel):
    """Filled rectangle, positioned by its top-left corner."""

    position: Position = Field(default_factory=Position)
    color: Color = Field(default_factory=Color)
    width_px: float = Field(default=0.0, alias="widthPx")
    height_px: float = Field(default=0.0, alias="heightPx")


class ImageRequest(_FrozenModel):
    """Request body for ``POST /generate``.

    Attributes:
        name: Optional label, only used in logs.
        width_px: Canvas width in pixels.
        height_px: Canvas height in pixels.
        bg_img_path: Background image on local disk.  Takes precedence over
            ``bg_color``.
        bg_color: Background fill colour.  An all-zero colour counts as unset.
        single_line_texts: Texts drawn right after the background.
        multi_line_texts: Wrapped texts drawn last.
        rectangles: Rectangles drawn after single-line texts.
        quality: JPEG quality.  ``None`` means the server default; values
            outside 1-100 are clamped.
    """

    name: str | None = None
    width_px: int = Field(..., alias="widthPx", gt=0, description="Canvas width in pixels.")
    height_px: int = Field(..., alias="heightPx", gt=0, description="Canvas height in pixels.")
    bg_img_path: str | None = Field(default=None, alias="bgImgPath")
    bg_color: Color | None = Field(default=None, alias="bgColor")
    single_line_texts: tuple[StyledText, ...] = Field(default=(), alias="singleLineTexts")
    multi_line_texts: tuple[MultiLineText, ...] = Field(default=(), alias="multiLineTexts")
    rectangles: tuple[Rectangle, ...] = ()
    quality: int | None = None

    @field_validator("bg_img_path")
    @classmethod
    def _empty_path_is_unset(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("quality")
    @classmethod
    def _clamp_quality(cls, value: int | None) -> int | None:
        if value is None:
            return None
        return max(MIN_QUALITY, min(MAX_QUALITY, value))

    @field_validator("single_line_texts", "multi_line_texts", "rectangles", mode="before")
    @classmethod
    def _null_list_is_empty(cls, value):
        return () if value is None else value

    def referenced_fonts(self) -> list[str]:
        """Font identifiers used by any text, in drawing order."""
        fonts = [text.font for text in self.single_line_texts]
        fonts.extend(text.styled_text.font for text in self.multi_line_texts)
        return fonts
