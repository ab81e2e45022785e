"""
Interactive region selection and composite-back for local image regeneration.

Editors turn pointer input into a binary mask over a source image; the
compositor blends a regenerated crop back into the original through that
mask with a feathered seam.
"""

from .core.compositor import (
    CompositeError,
    CompositeOptions,
    DimensionMismatch,
    OutOfBounds,
    composite,
    crop_image,
)
from .core.geometry import BoundingBox, CoordinateMapper, InvalidGeometry, Point, Shape, Stroke
from .core.history import HistoryStack
from .core.image import DecodeFailure, ImageCodecError, SourceImage
from .core.mask import MaskBuffer
from .config import CompositeJobConfig, load_job_config
from .editors import (
    AreaSelector,
    BoundingBoxController,
    BrushEditor,
    LassoEditor,
    LineEditor,
    MaskEditor,
)
from .session import GenerationFailed, SmartEditSession
from .settings import EngineSettings, get_settings, reset_settings_cache

__all__ = [
    "AreaSelector",
    "BoundingBox",
    "BoundingBoxController",
    "BrushEditor",
    "CompositeError",
    "CompositeJobConfig",
    "CompositeOptions",
    "CoordinateMapper",
    "DecodeFailure",
    "DimensionMismatch",
    "EngineSettings",
    "GenerationFailed",
    "HistoryStack",
    "ImageCodecError",
    "InvalidGeometry",
    "LassoEditor",
    "LineEditor",
    "MaskBuffer",
    "MaskEditor",
    "OutOfBounds",
    "Point",
    "Shape",
    "SmartEditSession",
    "SourceImage",
    "Stroke",
    "composite",
    "crop_image",
    "get_settings",
    "load_job_config",
    "reset_settings_cache",
]
