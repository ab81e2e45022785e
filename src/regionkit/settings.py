"""Engine settings loaded from the environment (and an optional .env) via Pydantic."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.geometry import SelectionMode


logger = logging.getLogger(__name__)


class EngineSettings(BaseSettings):
    """Injected defaults for brush sizes, thresholds and seam handling."""

    model_config = SettingsConfigDict(
        env_prefix="REGIONKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    brush_width: float = Field(default=40.0, gt=0, description="Default brush diameter in image pixels")
    line_width: float = Field(default=20.0, gt=0, description="Default straight-line width in image pixels")
    close_threshold_px: float = Field(
        default=20.0, gt=0, description="Distance to the first lasso vertex that closes the polygon"
    )
    min_box_size: float = Field(default=20.0, gt=0, description="Smallest bounding box edge in pixels")
    area_min_size: float = Field(
        default=10.0, ge=0, description="Area-select drags smaller than this in either dimension are dropped"
    )
    edge_blend: float = Field(default=3.0, ge=0, description="Seam feather width used when compositing")
    expansion: float = Field(default=0.0, ge=0, description="Mask dilation applied before compositing")
    overlay_color: Tuple[int, int, int] = Field(default=(239, 68, 68), description="Preview tint (RGB)")
    overlay_opacity: float = Field(default=0.6, ge=0, le=1)
    selection_mode: SelectionMode = "union"

    @field_validator("overlay_color")
    @classmethod
    def _validate_color(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if any(channel < 0 or channel > 255 for channel in value):
            raise ValueError(f"Overlay colour channels must be within 0-255, got {value}")
        return value


_settings: Optional[EngineSettings] = None


def get_settings() -> EngineSettings:
    global _settings
    if _settings is None:
        if not Path(".env").exists():
            logger.debug("No .env file in %s; using environment and defaults", Path.cwd())
        _settings = EngineSettings()
    return _settings


def reset_settings_cache() -> None:
    global _settings
    _settings = None
