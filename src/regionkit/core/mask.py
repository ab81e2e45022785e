"""
Binary selection mask rasterised with OpenCV.

Coverage for each primitive is drawn on a scratch layer first, then written
into the buffer as either selected (255) or unselected (0) after an optional
clip rectangle has been applied. Point coordinates are continuous image
coordinates (pixel ``(i, j)`` spans ``[i, i + 1)``), so they are shifted by
half a pixel before being handed to OpenCV's sub-pixel drawing routines.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from .geometry import BoundingBox, Point
from .image import SourceImage


SELECTED = 255
UNSELECTED = 0

# OpenCV sub-pixel precision (coordinates are multiplied by 2**SHIFT)
SHIFT = 4
_FIXED_ONE = 1 << SHIFT


def to_fixed(point: Point) -> Tuple[int, int]:
    return (
        int(round((point.x - 0.5) * _FIXED_ONE)),
        int(round((point.y - 0.5) * _FIXED_ONE)),
    )


def _thickness(width: float) -> int:
    return max(1, int(round(width)))


def stroke_coverage(
    shape: Tuple[int, int],
    points: Sequence[Point],
    width: float,
    line_type: int = cv2.LINE_8,
) -> np.ndarray:
    """
    Rasterise a round-capped, round-joined polyline.

    A single point renders as a filled disc of radius ``width / 2``. Each
    segment is drawn with OpenCV's thick line, which caps both ends with a
    disc, so consecutive segments meet with round joins.
    """
    layer = np.zeros(shape, dtype=np.uint8)
    if not points:
        return layer
    if len(points) == 1:
        radius = int(round(width / 2.0 * _FIXED_ONE))
        cv2.circle(layer, to_fixed(points[0]), radius, SELECTED, -1, line_type, SHIFT)
        return layer
    thickness = _thickness(width)
    for start, end in zip(points[:-1], points[1:]):
        cv2.line(layer, to_fixed(start), to_fixed(end), SELECTED, thickness, line_type, SHIFT)
    return layer


def polygon_coverage(
    shape: Tuple[int, int],
    points: Sequence[Point],
    line_type: int = cv2.LINE_8,
) -> np.ndarray:
    """Rasterise a closed polygon using ``cv2.fillPoly``."""
    layer = np.zeros(shape, dtype=np.uint8)
    if len(points) < 3:
        return layer
    contour = np.array([to_fixed(p) for p in points], dtype=np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(layer, [contour], SELECTED, line_type, SHIFT)
    return layer


class MaskBuffer:
    """Single-channel 8-bit mask the exact size of the source image."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Mask dimensions must be positive, got {width}x{height}")
        self._data = np.zeros((int(height), int(width)), dtype=np.uint8)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "MaskBuffer":
        """
        Build a mask from any 2D/3D array; alpha wins when present, otherwise luminance.

        Boolean arrays select their ``True`` pixels; numeric arrays select values above 127.
        """
        if array.dtype == np.bool_:
            array = array.astype(np.uint8) * SELECTED
        if array.ndim == 3:
            if array.shape[2] == 4:
                plane = array[..., 3]
            else:
                plane = array[..., 0] if array.shape[2] == 1 else cv2.cvtColor(array, cv2.COLOR_BGR2GRAY)
        else:
            plane = array
        buffer = cls(plane.shape[1], plane.shape[0])
        buffer._data[plane > 127] = SELECTED
        return buffer

    @classmethod
    def from_image(cls, image: SourceImage) -> "MaskBuffer":
        return cls.from_array(np.asarray(image.pixels))

    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape  # type: ignore[return-value]

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the raw buffer."""
        view = self._data.view()
        view.setflags(write=False)
        return view

    def as_bool(self) -> np.ndarray:
        return self._data > 0

    def selected_count(self) -> int:
        return int(np.count_nonzero(self._data))

    def is_empty(self) -> bool:
        return not self._data.any()

    def copy(self) -> "MaskBuffer":
        clone = MaskBuffer(self.width, self.height)
        clone._data[...] = self._data
        return clone

    # ------------------------------------------------------------------
    # Fill operations
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._data.fill(UNSELECTED)

    def fill(self, selected: bool = True) -> None:
        self._data.fill(SELECTED if selected else UNSELECTED)

    def flood_fill(self, seed: Point, selected: bool = True) -> int:
        """Flood the 4-connected region around ``seed``; returns the number of pixels changed."""
        x, y = int(seed.x), int(seed.y)
        if not (0 <= x < self.width and 0 <= y < self.height):
            return 0
        value = SELECTED if selected else UNSELECTED
        if self._data[y, x] == value:
            return 0
        area, *_ = cv2.floodFill(self._data, None, (x, y), value)
        return int(area)

    def paint(self, coverage: np.ndarray, selected: bool = True, clip: Optional[BoundingBox] = None) -> None:
        """Write ``coverage`` (non-zero = covered) into the buffer, restricted to ``clip``."""
        if coverage.shape != self._data.shape:
            raise ValueError(f"Coverage shape {coverage.shape} does not match mask {self._data.shape}")
        covered = coverage > 0
        if clip is not None:
            rows, cols = self._clip_slices(clip)
            region = np.zeros_like(covered)
            region[rows, cols] = covered[rows, cols]
            covered = region
        self._data[covered] = SELECTED if selected else UNSELECTED

    def paint_stroke(
        self,
        points: Sequence[Point],
        width: float,
        selected: bool = True,
        clip: Optional[BoundingBox] = None,
    ) -> None:
        self.paint(stroke_coverage(self.shape, points, width), selected, clip)

    def paint_polygon(
        self,
        points: Sequence[Point],
        selected: bool = True,
        clip: Optional[BoundingBox] = None,
    ) -> None:
        self.paint(polygon_coverage(self.shape, points), selected, clip)

    def _clip_slices(self, clip: BoundingBox) -> Tuple[slice, slice]:
        box = clip.rounded()
        x0 = min(max(int(box.x), 0), self.width)
        y0 = min(max(int(box.y), 0), self.height)
        x1 = min(max(int(box.right), 0), self.width)
        y1 = min(max(int(box.bottom), 0), self.height)
        return slice(y0, y1), slice(x0, x1)

    # ------------------------------------------------------------------
    def crop(self, box: BoundingBox) -> np.ndarray:
        rows, cols = self._clip_slices(box)
        return self._data[rows, cols].copy()

    def to_image(self) -> SourceImage:
        """PNG-tagged image suitable for the generator."""
        return SourceImage(self._data, "image/png")
