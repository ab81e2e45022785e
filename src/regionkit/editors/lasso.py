"""Click-to-place polygon (lasso) selection."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
from PySide6.QtCore import QObject

from ..core.geometry import BoundingBox, InvalidGeometry, Point, Shape
from ..core.image import SourceImage
from ..core.mask import MaskBuffer
from ..core.overlay import (
    RUBBER_BAND_ORANGE,
    SELECTION_RED,
    draw_dashed_line,
    draw_polyline,
    draw_vertex_markers,
    overlay_color,
)
from ..settings import EngineSettings
from .base import MaskEditor

logger = logging.getLogger(__name__)

MIN_VERTICES = 3


class LassoEditor(MaskEditor):
    """
    Polygon selection that closes itself when a click lands near the first vertex.

    ``display_ratio`` (image pixels per display pixel) scales the closing
    threshold so it feels the same regardless of how large the image is shown.
    """

    def __init__(
        self,
        image: SourceImage,
        settings: Optional[EngineSettings] = None,
        clip_box: Optional[BoundingBox] = None,
        outline_width: float = 2.0,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(image, settings, clip_box, parent)
        self.close_threshold = float(self._settings.close_threshold_px)
        self.outline_width = outline_width
        self._vertices: List[Point] = []
        self._cursor: Optional[Point] = None

    # ------------------------------------------------------------------
    @property
    def vertices(self) -> tuple:
        return tuple(self._vertices)

    @property
    def cursor(self) -> Optional[Point]:
        return self._cursor

    def has_pending_input(self) -> bool:
        return bool(self._vertices)

    # ------------------------------------------------------------------
    # Pointer gestures
    # ------------------------------------------------------------------
    def add_vertex(self, point: Point, display_ratio: float = 1.0) -> bool:
        """Place a vertex; returns ``True`` when the click closed and committed the polygon."""
        if self._inert:
            logger.debug("Ignoring vertex while inert")
            return False
        if len(self._vertices) >= MIN_VERTICES:
            threshold = self.close_threshold * display_ratio
            if point.distance_to(self._vertices[0]) < threshold:
                self._close()
                return True
        self._vertices.append(point)
        return False

    def move_cursor(self, point: Point) -> None:
        self._cursor = point

    def leave(self) -> None:
        self._cursor = None

    def close_shape(self) -> None:
        if self._inert:
            return
        if len(self._vertices) < MIN_VERTICES:
            raise InvalidGeometry(
                f"A lasso needs at least {MIN_VERTICES} vertices to close, got {len(self._vertices)}"
            )
        self._close()

    # MaskEditor handle
    def commit(self) -> bool:
        if self._inert or len(self._vertices) < MIN_VERTICES:
            return False
        self._close()
        return True

    def cancel(self) -> None:
        self._vertices = []

    def _close(self) -> None:
        shape = Shape(tuple(self._vertices), self._selection_mode)
        self._vertices = []
        logger.debug("Closing %s lasso with %d vertices (area %.1f px)", shape.mode, len(shape.points), shape.area())
        self._commit_item(shape)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _render_item(self, mask: MaskBuffer, item: Shape) -> None:
        mask.paint_polygon(item.points, item.selects, self._clip_box)

    def render_overlay(self) -> np.ndarray:
        """
        Committed polygons filled and outlined, the open polygon as a polyline,
        a dashed rubber band to the cursor, and vertex markers with the first
        vertex highlighted as the closing target.
        """
        canvas = np.ascontiguousarray(super().render_overlay())
        solid = overlay_color(SELECTION_RED, 1.0)
        for shape in self._history.items:
            draw_polyline(canvas, shape.points, solid, self.outline_width, closed=True)

        if self._vertices:
            draw_polyline(canvas, self._vertices, solid, self.outline_width)
            if self._cursor is not None:
                draw_dashed_line(canvas, self._vertices[-1], self._cursor, RUBBER_BAND_ORANGE, self.outline_width)
            draw_vertex_markers(canvas, self._vertices, self.outline_width + 4, solid)
        return canvas
