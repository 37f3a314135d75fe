"""Canvasgen — FastAPI Application.

This module defines the FastAPI application factory, the two REST routes,
and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The service is stateless apart from one read-only object:

- **Configuration** comes from :class:`~canvasgen.core.config.CanvasgenConfig`
  (environment variables and ``.env``).
- **Font registry** is built once in the application lifespan by scanning
  the fonts directory, stored on ``app.state``, and handed to route handlers
  through a dependency.  It is never mutated afterwards.
- **Rendering** is delegated to :func:`~canvasgen.core.renderer.render_image`.
  The generate handler is a plain ``def`` so uvicorn runs it on its worker
  thread pool; each request renders independently.
- **Authentication** is an HTTP middleware comparing the ``Authorization``
  header with the configured API key.  It runs before routing and body
  parsing, so rejected requests never reach a handler.

Endpoints
---------
========  ================  ===========================================
Method    Path              Purpose
========  ================  ===========================================
GET       ``/font-faces``   List registered font identifiers
POST      ``/generate``     Render an :class:`ImageRequest` as a JPEG
========  ================  ===========================================

Every error response has the shape ``{"error": "<message>"}``:

- 400 — malformed JSON, schema violations, unknown fonts, disallowed
  background paths, oversized canvases
- 401 — missing or wrong ``Authorization`` header
- 500 — rendering failed (no background, unreadable font or image)

Usage
-----
CLI (installed entry point)::

    canvasgen

Direct invocation::

    python -m canvasgen.api.main
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from canvasgen import __version__
from canvasgen.core.config import CanvasgenConfig, config
from canvasgen.core.errors import RenderError, RequestValidationFailed
from canvasgen.core.fonts import FontRegistry
from canvasgen.core.models import ImageRequest
from canvasgen.core.renderer import render_image

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized"

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> CanvasgenConfig:
    """Return the configuration the running application was built with."""
    return request.app.state.settings


def get_font_registry(request: Request) -> FontRegistry:
    """Return the font registry built at startup.

    Raises:
        RuntimeError: If the application lifespan has not run yet.
    """
    registry: FontRegistry | None = request.app.state.font_registry
    if registry is None:
        raise RuntimeError("Font registry is not initialised; was the lifespan started?")
    return registry


# ---------------------------------------------------------------------------
# Request checks that need more than the pydantic schema.
# ---------------------------------------------------------------------------


def _check_fonts(req: ImageRequest, registry: FontRegistry) -> None:
    """Reject requests that reference fonts outside the registry.

    Raises:
        RequestValidationFailed: Naming the first unknown font.
    """
    missing = registry.missing(req.referenced_fonts())
    if missing:
        raise RequestValidationFailed(f"Font not found: {missing[0]}")


def _check_canvas_size(req: ImageRequest, settings: CanvasgenConfig) -> None:
    """Reject canvases larger than ``max_canvas_pixels``."""
    area = req.width_px * req.height_px
    if area > settings.max_canvas_pixels:
        raise RequestValidationFailed(
            f"Canvas too large: {req.width_px}x{req.height_px} exceeds "
            f"{settings.max_canvas_pixels} pixels"
        )


def _check_background_path(req: ImageRequest, settings: CanvasgenConfig) -> None:
    """Keep background images inside ``backgrounds_dir`` when one is set."""
    if not req.bg_img_path or settings.backgrounds_dir is None:
        return

    # Relative paths are read relative to the working directory, so check them
    # the same way.
    base = settings.backgrounds_dir.resolve()
    try:
        resolved = Path(req.bg_img_path).resolve()
    except (OSError, RuntimeError) as e:
        raise RequestValidationFailed(f"Invalid background path: {e}") from e

    if not resolved.is_relative_to(base):
        logger.warning(f"Background path outside of backgrounds directory: {resolved}")
        raise RequestValidationFailed("Invalid background path: outside of backgrounds directory")


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.get("/font-faces")
def list_font_faces(registry: FontRegistry = Depends(get_font_registry)) -> dict:
    """Return every registered font identifier.

    The list is fixed at startup, so repeated calls return the same value.

    Returns:
        Dictionary with a single ``fontFaces`` key.
    """
    return {"fontFaces": registry.to_list()}


@router.post(
    "/generate",
    response_class=Response,
    responses={200: {"content": {"image/jpeg": {}}, "description": "The rendered JPEG."}},
)
def generate_image(
    req: ImageRequest,
    registry: FontRegistry = Depends(get_font_registry),
    settings: CanvasgenConfig = Depends(get_settings),
) -> Response:
    """Render an image description and return it as a JPEG.

    This endpoint:

    1. Validates the body against :class:`ImageRequest` (done by FastAPI).
    2. Checks that every referenced font is registered.
    3. Checks the canvas size and, if restricted, the background path.
    4. Renders and encodes the image.

    Args:
        req: Validated :class:`ImageRequest` payload.
        registry: Font registry built at startup.
        settings: Application configuration.

    Returns:
        Raw JPEG bytes with ``Content-Type: image/jpeg``.

    Raises:
        RequestValidationFailed: 400 for unknown fonts, oversized canvases,
            or background paths outside the allowed directory.
        RenderError: 500 when rendering fails.
    """
    _check_fonts(req, registry)
    _check_canvas_size(req, settings)
    _check_background_path(req, settings)

    image = render_image(req, default_quality=settings.default_quality)
    return Response(content=image, media_type="image/jpeg")


# ---------------------------------------------------------------------------
# Error handling.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def format_validation_errors(errors: list[dict]) -> str:
    """Flatten pydantic error dicts into one readable message.

    ``{"loc": ("body", "multiLineTexts", 0, "wrapWidthPx"), "msg": "Field
    required"}`` becomes ``"multiLineTexts.0.wrapWidthPx: Field required"``.
    """
    parts = []
    for err in errors:
        loc = [str(item) for item in err.get("loc", ()) if item != "body"]
        msg = err.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_validation_errors(list(exc.errors()))
    logger.warning(f"Rejected {request.method} {request.url.path}: {message}")
    return _error(400, message)


async def _handle_validation_failed(request: Request, exc: RequestValidationFailed) -> JSONResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return _error(400, str(exc))


async def _handle_render_error(request: Request, exc: RenderError) -> JSONResponse:
    logger.error(f"Render failed for {request.url.path}: {exc}", exc_info=exc)
    return _error(500, str(exc))


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    settings: CanvasgenConfig | None = None,
    font_registry: FontRegistry | None = None,
) -> FastAPI:
    """Build a configured FastAPI application.

    Args:
        settings: Configuration to use.  Defaults to the global ``config``.
        font_registry: Pre-built registry.  When omitted, the fonts
            directory is scanned once on startup.

    Returns:
        The FastAPI application.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the font registry on startup.

        Args:
            app: The FastAPI application instance.

        Yields:
            Control back to the application for the duration of its lifetime.
        """
        if app.state.font_registry is None:
            app.state.font_registry = FontRegistry.scan(
                settings.fonts_dir, settings.font_extensions
            )
        logger.info(f"Serving {len(app.state.font_registry)} font face(s).")

        yield

    app = FastAPI(
        title="Canvasgen",
        description="Render JPEG images from declarative JSON descriptions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.font_registry = font_registry

    if not settings.api_key:
        logger.warning("API_KEY is not set; every request will be rejected with 401.")

    expected_token = settings.api_key.encode("utf-8")

    @app.middleware("http")
    async def authenticate(request: Request, call_next):
        """Abort any request whose Authorization header is not the API key."""
        token = request.headers.get("Authorization")
        # Starlette decodes header values as latin-1; re-encode to the raw bytes.
        if not expected_token or token is None or not hmac.compare_digest(
            token.encode("latin-1"), expected_token
        ):
            logger.warning(f"Unauthorized {request.method} {request.url.path}")
            return _error(401, UNAUTHORIZED_MESSAGE)
        return await call_next(request)

    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(RequestValidationFailed, _handle_validation_failed)
    app.add_exception_handler(RenderError, _handle_render_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)

    app.include_router(router)
    return app


# Application used by uvicorn and the CLI entry point.
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~canvasgen.core.config.config`
    (``CANVASGEN_SERVER_HOST``, ``CANVASGEN_SERVER_PORT``,
    ``CANVASGEN_LOG_LEVEL``).  Defaults to ``0.0.0.0:8080``.

    This function is registered as the ``canvasgen`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "canvasgen.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
