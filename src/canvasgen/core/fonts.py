"""Font discovery for the Canvasgen image service.

The registry is built exactly once, when the application starts, by walking
the configured fonts directory. Each discovered file is identified by its
path (the fonts root joined with the file's location below it), and that
identifier is what clients send back in ``StyledText.font``.

The registry never changes after construction. Picking up new fonts requires
a process restart.

Usage
-----
::

    from canvasgen.core.fonts import FontRegistry

    registry = FontRegistry.scan("gfonts")
    "gfonts/Roboto/Roboto-Regular.ttf" in registry  # True
    registry.to_list()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_FONT_EXTENSIONS: tuple[str, ...] = (".ttf",)


class FontRegistry:
    """Immutable, ordered collection of font identifiers.

    Safe to share between request threads: nothing mutates it after
    ``__init__``.

    Attributes:
        root: Directory the registry was scanned from, or ``None`` when the
            registry was built from an explicit list.
    """

    __slots__ = ("_font_faces", "_lookup", "root")

    def __init__(self, font_faces: Iterable[str] = (), root: Path | None = None) -> None:
        # Preserve first-seen order while dropping duplicates.
        self._font_faces: tuple[str, ...] = tuple(dict.fromkeys(font_faces))
        self._lookup: frozenset[str] = frozenset(self._font_faces)
        self.root = root

    @classmethod
    def scan(
        cls,
        root: str | Path,
        extensions: Iterable[str] = DEFAULT_FONT_EXTENSIONS,
    ) -> FontRegistry:
        """Recursively discover font files below *root*.

        Args:
            root: Directory to walk.  Relative roots produce relative
                identifiers, absolute roots produce absolute ones.
            extensions: Accepted file suffixes, compared case-insensitively.

        Returns:
            A registry whose identifiers are sorted lexicographically.
        """
        root = Path(root)
        suffixes = {ext.lower() for ext in extensions}

        if not root.is_dir():
            logger.warning(f"Font directory not found: {root} (no fonts registered)")
            return cls((), root=root)

        found = sorted(
            path.as_posix()
            for path in root.rglob("*")
            if path.is_file() and path.suffix.lower() in suffixes
        )
        for font_face in found:
            logger.debug(f"Registered font: {font_face}")
        logger.info(f"Discovered {len(found)} font file(s) under {root}")

        return cls(found, root=root)

    @property
    def font_faces(self) -> tuple[str, ...]:
        """All registered identifiers, in discovery order."""
        return self._font_faces

    def to_list(self) -> list[str]:
        """Return a fresh list copy, suitable for JSON serialisation."""
        return list(self._font_faces)

    def missing(self, identifiers: Iterable[str]) -> list[str]:
        """Return the identifiers that are not registered.

        Order follows the input; each unknown identifier is reported once.
        """
        return [font for font in dict.fromkeys(identifiers) if font not in self._lookup]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self._font_faces)

    def __len__(self) -> int:
        return len(self._font_faces)

    def __repr__(self) -> str:
        return f"FontRegistry(root={self.root!r}, fonts={len(self)})"
