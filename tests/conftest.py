"""Shared pytest fixtures for Canvasgen tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageFont

from canvasgen.api.main import create_app
from canvasgen.core import renderer
from canvasgen.core.config import CanvasgenConfig
from canvasgen.core.fonts import FontRegistry

API_KEY = "test-secret"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
    """Raw bytes of the TrueType font bundled with Pillow.

    Skips the test when Pillow was built without FreeType, since there is
    then no TrueType font to render with.
    """
    font = ImageFont.load_default(size=16)
    if not isinstance(font, ImageFont.FreeTypeFont):
        pytest.skip("Pillow was built without FreeType support")
    return font.font_bytes


@pytest.fixture
def fonts_dir(temp_dir: Path, font_bytes: bytes) -> Path:
    """Create a fonts tree with nested TrueType files and some noise.

    Layout::

        gfonts/
            Sans/Sans-Regular.ttf
            Sans/bold/Sans-Bold.TTF
            Serif-Regular.ttf
            README.txt
    """
    root = temp_dir / "gfonts"
    (root / "Sans" / "bold").mkdir(parents=True)
    (root / "Sans" / "Sans-Regular.ttf").write_bytes(font_bytes)
    (root / "Sans" / "bold" / "Sans-Bold.TTF").write_bytes(font_bytes)
    (root / "Serif-Regular.ttf").write_bytes(font_bytes)
    (root / "README.txt").write_text("not a font\n")
    return root


@pytest.fixture
def font_path(fonts_dir: Path) -> str:
    """Identifier of a registered, valid font."""
    return (fonts_dir / "Sans" / "Sans-Regular.ttf").as_posix()


@pytest.fixture
def test_config(fonts_dir: Path) -> CanvasgenConfig:
    """Create a test configuration pointing at the temporary fonts tree.

    Args:
        fonts_dir: Fonts directory from fixture

    Returns:
        CanvasgenConfig instance for testing
    """
    return CanvasgenConfig(
        _env_file=None,
        api_key=API_KEY,
        fonts_dir=fonts_dir,
        default_quality=90,
    )


@pytest.fixture
def font_registry(test_config: CanvasgenConfig) -> FontRegistry:
    """Registry scanned from the test fonts tree."""
    return FontRegistry.scan(test_config.fonts_dir, test_config.font_extensions)


@pytest.fixture
def render_spy(monkeypatch) -> MagicMock:
    """Wrap the renderer used by the API so calls can be asserted on."""
    spy = MagicMock(wraps=renderer.render_image)
    monkeypatch.setattr("canvasgen.api.main.render_image", spy)
    return spy


@pytest.fixture
def test_app(test_config: CanvasgenConfig):
    """FastAPI application that scans the test fonts tree on startup."""
    return create_app(test_config)


@pytest.fixture
def test_client(test_app) -> Generator[TestClient, None, None]:
    """Authenticated test client with the application lifespan running."""
    with TestClient(test_app, headers={"Authorization": API_KEY}) as client:
        yield client


@pytest.fixture
def anon_client(test_app) -> Generator[TestClient, None, None]:
    """Test client that sends no Authorization header."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def solid_image_file(temp_dir: Path) -> Path:
    """A 20x20 pure blue PNG on disk."""
    path = temp_dir / "backgrounds" / "blue.png"
    path.parent.mkdir()
    Image.new("RGB", (20, 20), (0, 0, 255)).save(path, format="PNG")
    return path


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers that pass the authentication middleware."""
    return {"Authorization": API_KEY}
