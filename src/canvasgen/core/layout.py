"""Text layout helpers: word wrapping and line placement."""

from __future__ import annotations

from typing import Protocol

from canvasgen.core.models import TextAlign


class SupportsGetLength(Protocol):
    """Anything that can measure a string, e.g. ``ImageFont.FreeTypeFont``."""

    def getlength(self, text: str) -> float: ...


# Pillow anchors: horizontal l/m/r, vertical "a" = ascender (top of the text).
_ALIGN_ANCHORS: dict[TextAlign, str] = {
    TextAlign.LEFT: "la",
    TextAlign.CENTER: "ma",
    TextAlign.RIGHT: "ra",
}


def wrap_text(text: str, font: SupportsGetLength, width: float) -> list[str]:
    """Greedily wrap *text* into lines no wider than *width*.

    Explicit newlines always start a new line, and an empty paragraph stays
    as an empty line.  Runs of whitespace between words collapse to a single
    space.  A word wider than *width* is never split; it gets a line of its
    own.

    Args:
        text: Text to wrap.
        font: Font used to measure candidate lines.
        width: Maximum line width in pixels.

    Returns:
        The wrapped lines, without leading or trailing whitespace.
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if current and font.getlength(candidate) > width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def line_advance(size_px: float, line_spacing: float) -> float:
    """Vertical distance between the tops of consecutive lines."""
    return size_px * line_spacing


def aligned_origin(align: TextAlign, box_x: float, box_width: float) -> tuple[float, str]:
    """Return the x coordinate and Pillow anchor for a line inside a box.

    The box's left edge stays at *box_x* for every alignment; only the point
    each line hangs from moves.
    """
    if align is TextAlign.CENTER:
        x = box_x + box_width / 2
    elif align is TextAlign.RIGHT:
        x = box_x + box_width
    else:
        x = box_x
    return x, _ALIGN_ANCHORS[align]
