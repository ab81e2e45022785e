"""Geometry and coordinate helpers shared by every editor."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal, Tuple


class InvalidGeometry(ValueError):
    """Raised when a shape or box cannot be built from the given coordinates."""


@dataclass(frozen=True)
class Point:
    """A position in source-image pixel space."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in source-image pixel space."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InvalidGeometry(f"Box dimensions must be non-negative, got {self.width}x{self.height}")

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> "BoundingBox":
        """Normalise two arbitrary corners into a box with positive size."""
        left, right = sorted((a.x, b.x))
        top, bottom = sorted((a.y, b.y))
        return cls(left, top, right - left, bottom - top)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def rounded(self) -> "BoundingBox":
        """Integer box used whenever pixels are cropped or pasted (edges are rounded, not sizes)."""
        left = int(round(self.x))
        top = int(round(self.y))
        return BoundingBox(
            left,
            top,
            int(round(self.right)) - left,
            int(round(self.bottom)) - top,
        )

    def slices(self) -> Tuple[slice, slice]:
        """Return ``(rows, cols)`` slices for indexing a numpy image."""
        box = self.rounded()
        return slice(box.y, box.y + box.height), slice(box.x, box.x + box.width)

    def fits_within(self, image_width: float, image_height: float) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.right <= image_width
            and self.bottom <= image_height
        )

    def translated(self, dx: float, dy: float) -> "BoundingBox":
        return replace(self, x=self.x + dx, y=self.y + dy)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def to_image_space(
    display_x: float,
    display_y: float,
    display_width: float,
    display_height: float,
    image_width: float,
    image_height: float,
) -> Point:
    """
    Map a pointer position on the displayed element to source-image pixels.

    Parameters
    ----------
    display_x, display_y:
        Pointer position relative to the top-left corner of the displayed image.
    display_width, display_height:
        Rendered size of the image element at the time of the event.
    image_width, image_height:
        Natural size of the source image.
    """
    if display_width <= 0 or display_height <= 0:
        raise ValueError("Display dimensions must be positive")
    # Multiply before dividing so the display corners land exactly on the image corners
    return Point(
        display_x * image_width / display_width,
        display_y * image_height / display_height,
    )


def display_to_image_ratio(display_width: float, image_width: float) -> float:
    """Number of image pixels covered by one display pixel along x."""
    if display_width <= 0:
        raise ValueError("Display width must be positive")
    return image_width / display_width


class CoordinateMapper:
    """Bind :func:`to_image_space` to one source image.

    The display size is passed on every call because the element may be
    resized between pointer events.
    """

    def __init__(self, image_width: int, image_height: int) -> None:
        self.image_width = image_width
        self.image_height = image_height

    def map(self, display_x: float, display_y: float, display_width: float, display_height: float) -> Point:
        return to_image_space(
            display_x,
            display_y,
            display_width,
            display_height,
            self.image_width,
            self.image_height,
        )

    def ratio(self, display_width: float) -> float:
        return display_to_image_ratio(display_width, self.image_width)


SelectionMode = Literal["union", "subtract"]


@dataclass(frozen=True)
class Stroke:
    """A committed freehand (or straight) brush stroke."""

    points: Tuple[Point, ...]
    width: float
    mode: SelectionMode = "union"

    @property
    def selects(self) -> bool:
        return self.mode == "union"


@dataclass(frozen=True)
class Shape:
    """A committed closed lasso polygon."""

    points: Tuple[Point, ...]
    mode: SelectionMode = "union"

    def __post_init__(self) -> None:
        if len(self.points) < 3:
            raise InvalidGeometry(f"A polygon needs at least 3 vertices, got {len(self.points)}")

    @property
    def selects(self) -> bool:
        return self.mode == "union"

    def area(self) -> float:
        """Shoelace area, used for sanity checks and logging."""
        total = 0.0
        for a, b in zip(self.points, self.points[1:] + self.points[:1]):
            total += a.x * b.y - b.x * a.y
        return abs(total) / 2.0
