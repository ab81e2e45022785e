"""
Composite a locally regenerated region back into the original image.

The smart-edit flow crops a bounding box out of the source image, sends the
crop (and the matching crop of the mask) to the generator, and receives a
replacement image of exactly the box size. :func:`composite` pastes that
replacement back through a feathered version of the mask so only the
selected pixels change and the seam fades over ``edge_blend`` pixels.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import cv2
import numpy as np
from pydantic import BaseModel, Field

from .feather import FeatherParameters, dilate, signed_distance_alpha
from .geometry import BoundingBox
from .image import SourceImage
from .mask import MaskBuffer


logger = logging.getLogger(__name__)

MaskLike = Union[MaskBuffer, SourceImage, np.ndarray]


class CompositeError(RuntimeError):
    """Base class for compositing failures; no partial image is produced."""


class DimensionMismatch(CompositeError):
    """The regenerated region or the mask does not have the expected size."""


class OutOfBounds(CompositeError):
    """The bounding box does not lie inside the original image."""


class CompositeOptions(BaseModel):
    """Seam controls for :func:`composite`."""

    expansion: float = Field(default=0.0, ge=0, description="Dilate the mask by this many pixels")
    edge_blend: float = Field(default=3.0, ge=0, description="Width of the linear blend ramp in pixels")


def _as_mask(mask: MaskLike) -> MaskBuffer:
    if isinstance(mask, MaskBuffer):
        return mask
    if isinstance(mask, SourceImage):
        return MaskBuffer.from_image(mask)
    return MaskBuffer.from_array(np.asarray(mask))


def _validated_box(image: SourceImage, box: BoundingBox) -> BoundingBox:
    pixel_box = box.rounded()
    if pixel_box.width <= 0 or pixel_box.height <= 0:
        raise OutOfBounds(f"Bounding box is empty: {box.to_dict()}")
    if not pixel_box.fits_within(image.width, image.height):
        raise OutOfBounds(
            f"Bounding box {pixel_box.to_dict()} falls outside {image.width}x{image.height} image"
        )
    return pixel_box


def match_channels(pixels: np.ndarray, channels: int) -> np.ndarray:
    """Convert ``pixels`` to the OpenCV layout with ``channels`` channels (1, 3 or 4)."""
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[..., 0]
    source = 1 if pixels.ndim == 2 else pixels.shape[2]
    if source == channels:
        return pixels
    conversions = {
        (1, 3): cv2.COLOR_GRAY2BGR,
        (1, 4): cv2.COLOR_GRAY2BGRA,
        (3, 1): cv2.COLOR_BGR2GRAY,
        (3, 4): cv2.COLOR_BGR2BGRA,
        (4, 1): cv2.COLOR_BGRA2GRAY,
        (4, 3): cv2.COLOR_BGRA2BGR,
    }
    try:
        code = conversions[(source, channels)]
    except KeyError:
        raise DimensionMismatch(f"Cannot convert {source}-channel pixels to {channels} channels") from None
    return cv2.cvtColor(np.ascontiguousarray(pixels), code)


def crop_image(image: SourceImage, box: BoundingBox) -> SourceImage:
    """Return the pixels of ``image`` under ``box`` (rounded to whole pixels)."""
    pixel_box = _validated_box(image, box)
    rows, cols = pixel_box.slices()
    return image.with_pixels(image.pixels[rows, cols])


def blend_alpha(mask: np.ndarray, options: CompositeOptions) -> np.ndarray:
    """Alpha matte (1 = new content) for a box-local boolean mask."""
    selected = dilate(mask, options.expansion)
    return signed_distance_alpha(selected, FeatherParameters(inside_width_px=options.edge_blend))


def composite(
    original: SourceImage,
    region: SourceImage,
    box: BoundingBox,
    mask: MaskLike,
    options: Optional[CompositeOptions] = None,
) -> SourceImage:
    """
    Paste ``region`` into ``original`` at ``box`` through a feathered ``mask``.

    Parameters
    ----------
    original:
        Full-size source image; every pixel outside ``box`` is returned unchanged.
    region:
        Regenerated content, exactly ``box.width x box.height`` pixels.
    box:
        Placement of the region in source-image pixels.
    mask:
        Full-size selection mask (``MaskBuffer``, mask image, or array).
    options:
        Mask expansion and edge blend widths; defaults to :class:`CompositeOptions`.

    Raises
    ------
    DimensionMismatch
        When ``region`` does not match the box or ``mask`` does not match ``original``.
    OutOfBounds
        When ``box`` is empty or extends past the original image.
    """
    options = options or CompositeOptions()
    pixel_box = _validated_box(original, box)
    if region.size != (int(pixel_box.width), int(pixel_box.height)):
        raise DimensionMismatch(
            f"Region is {region.width}x{region.height}, box is {int(pixel_box.width)}x{int(pixel_box.height)}"
        )
    mask_buffer = _as_mask(mask)
    if (mask_buffer.width, mask_buffer.height) != original.size:
        raise DimensionMismatch(
            f"Mask is {mask_buffer.width}x{mask_buffer.height}, image is {original.width}x{original.height}"
        )

    rows, cols = pixel_box.slices()
    alpha = blend_alpha(mask_buffer.crop(pixel_box) > 0, options)

    base = original.pixels[rows, cols].astype(np.float32)
    incoming = match_channels(np.asarray(region.pixels), original.channels).astype(np.float32)
    if base.ndim == 3:
        alpha = alpha[..., None]
    blended = base * (1.0 - alpha) + incoming * alpha

    output = np.array(original.pixels, copy=True)
    output[rows, cols] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
    logger.debug(
        "Composited %dx%d region at (%d, %d) with expansion=%s edge_blend=%s",
        int(pixel_box.width),
        int(pixel_box.height),
        int(pixel_box.x),
        int(pixel_box.y),
        options.expansion,
        options.edge_blend,
    )
    return original.with_pixels(output)
