"""Configuration management for the Canvasgen image service.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the CANVASGEN_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CANVASGEN_* prefix)
2. .env file in the working directory
3. Default values defined in CanvasgenConfig

The shared secret is the one exception to the prefix rule: it is read from
``API_KEY`` (or ``CANVASGEN_API_KEY``), which is how deployments already
provision it.

Example .env file:
    API_KEY=change-me
    CANVASGEN_FONTS_DIR=gfonts
    CANVASGEN_SERVER_PORT=8080
    CANVASGEN_DEFAULT_QUALITY=85

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The FastAPI application factory takes it as its default, but any
``CanvasgenConfig`` can be passed explicitly (tests do this).

Usage Example
-------------
    from canvasgen.core.config import config

    print(config.fonts_dir)
    print(config.server_port)

    # Configuration is immutable after initialization
    # To change values, set environment variables and restart
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CanvasgenConfig(BaseSettings):
    """Main configuration for the Canvasgen image service.

    Attributes
    ----------
    Security:
        api_key : str
            Shared secret compared verbatim against the ``Authorization``
            header. Empty means every request is rejected.

    Fonts:
        fonts_dir : Path
            Root directory scanned recursively for font files at startup
        font_extensions : tuple[str, ...]
            File suffixes treated as fonts (matched case-insensitively)

    Rendering:
        default_quality : int
            JPEG quality used when a request does not specify one
        max_canvas_pixels : int
            Upper bound on ``widthPx * heightPx`` for a single request
        backgrounds_dir : Path | None
            When set, background images must live under this directory

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Listening port
        log_level : str
            Root log level used by the CLI entry point

    Notes
    -----
    - Configuration is immutable after initialization
    - The fonts directory is not created; a missing directory simply
      produces an empty font registry
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CANVASGEN_",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    # Security
    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("api_key", "canvasgen_api_key"),
        description="Shared secret expected in the Authorization header",
    )

    # Fonts
    fonts_dir: Path = Field(
        default=Path("gfonts"),
        description="Directory scanned recursively for font files",
    )
    font_extensions: tuple[str, ...] = Field(
        default=(".ttf",),
        description="File suffixes recognised as font files",
    )

    # Rendering
    default_quality: int = Field(
        default=75,
        description="JPEG quality used when the request omits one",
        ge=1,
        le=100,
    )
    max_canvas_pixels: int = Field(
        default=100_000_000,
        description="Largest canvas area (width * height) accepted",
        ge=1,
    )
    backgrounds_dir: Path | None = Field(
        default=None,
        description="Restrict background images to this directory (unset = any path)",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8080,
        description="Server port",
        ge=1,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level for the CLI entry point",
    )

    @field_validator("font_extensions", mode="after")
    @classmethod
    def _normalise_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        # ".TTF", "ttf" and ".ttf" all mean the same suffix
        return tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value if ext
        )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


# Global configuration instance, loaded from CANVASGEN_* variables and .env.
config = CanvasgenConfig()
