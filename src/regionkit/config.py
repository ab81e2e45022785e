"""
Job configuration for command-line compositing.

A job is a small YAML file naming the original image, the regenerated
region, the full-size mask, the box the region belongs to, and where to
write the result.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .core.compositor import CompositeOptions
from .core.geometry import BoundingBox


class BoxConfig(BaseModel):
    """Bounding box in source-image pixels."""

    x: float = Field(..., ge=0)
    y: float = Field(..., ge=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    def to_box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)


class CompositeJobConfig(BaseModel):
    """Top-level description of one composite-back job."""

    original: Path = Field(..., description="Full-size source image")
    region: Path = Field(..., description="Regenerated crop, same size as the box")
    mask: Path = Field(..., description="Full-size selection mask (white = selected)")
    box: BoxConfig
    options: CompositeOptions = Field(default_factory=CompositeOptions)
    output: Optional[Path] = Field(default=None, description="Where to write the composited image")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Optional metadata for bookkeeping")

    @field_validator("original", "region", "mask")
    @classmethod
    def _validate_input(cls, value: Path) -> Path:
        if not value.exists():
            raise ValueError(f"Input image not found: {value}")
        return value

    @model_validator(mode="after")
    def _default_output(self) -> "CompositeJobConfig":
        if self.output is None:
            self.output = self.original.with_name(f"{self.original.stem}_composited.png")
        return self


def _resolve_relative(data: Dict[str, Any], base: Path) -> Dict[str, Any]:
    for key in ("original", "region", "mask", "output"):
        value = data.get(key)
        if value is not None and not Path(value).is_absolute():
            data[key] = str((base / value).resolve())
    return data


def load_job_config(path: Union[str, Path]) -> CompositeJobConfig:
    """Load and validate a YAML job file; relative paths resolve against its directory."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Job file {path} must contain a mapping at the top level")
    return CompositeJobConfig.model_validate(_resolve_relative(data, path.parent))


def dump_job_config(config: CompositeJobConfig, path: Union[str, Path]) -> Path:
    path = Path(path)
    payload = config.model_dump(mode="json")
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)
    return path
