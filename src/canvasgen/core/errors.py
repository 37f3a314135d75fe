"""Exception types raised by the Canvasgen core.

The HTTP layer maps these onto status codes:

- :class:`RequestValidationFailed` -> 400
- :class:`RenderError` and its subclasses -> 500

Every message is meant to be returned to the client verbatim in the
``{"error": ...}`` body, so keep them short and free of internals.
"""


class CanvasgenError(Exception):
    """Base class for all Canvasgen errors."""


class RequestValidationFailed(CanvasgenError):
    """A syntactically valid request that cannot be served.

    Raised for semantic problems pydantic cannot see on its own, such as a
    font identifier that is not in the registry.
    """


class RenderError(CanvasgenError):
    """Rendering aborted; no image is produced."""


class BackgroundError(RenderError):
    """The request specifies neither a background image nor a colour."""


class FontLoadError(RenderError):
    """A font file could not be opened or parsed."""


class ImageLoadError(RenderError):
    """A background image could not be opened or decoded."""
