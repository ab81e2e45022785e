"""Rectangular drag selection that hands back the cropped area."""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np
from PySide6.QtCore import QObject, Signal

from ..core.compositor import crop_image
from ..core.geometry import BoundingBox, Point
from ..core.image import SourceImage
from ..core.mask import SHIFT, to_fixed
from ..core.overlay import RUBBER_BAND_ORANGE, blank_overlay, draw_dashed_line
from ..settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)

AREA_FILL = (249, 115, 22, 51)


class AreaSelector(QObject):
    """Emits ``area_selected(cropped, box)`` once a drag covers at least ``min_size`` in both axes."""

    area_selected = Signal(object, object)  # (SourceImage, BoundingBox)

    def __init__(
        self,
        image: SourceImage,
        settings: Optional[EngineSettings] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        settings = settings or get_settings()
        self.min_size = float(settings.area_min_size)
        self._image = image
        self._start: Optional[Point] = None
        self._end: Optional[Point] = None
        self._selection: Optional[BoundingBox] = None
        self._inert = False

    @property
    def image(self) -> SourceImage:
        return self._image

    @property
    def selection(self) -> Optional[BoundingBox]:
        """Last accepted selection, or the rectangle being dragged."""
        if self._start is not None and self._end is not None:
            return self._normalised(self._start, self._end)
        return self._selection

    @property
    def is_dragging(self) -> bool:
        return self._start is not None

    @property
    def is_inert(self) -> bool:
        return self._inert

    def set_inert(self, inert: bool) -> None:
        if inert:
            self._start = self._end = None
        self._inert = bool(inert)

    def load_image(self, image: SourceImage) -> None:
        self._image = image
        self.clear()

    def clear(self) -> None:
        self._start = None
        self._end = None
        self._selection = None

    # ------------------------------------------------------------------
    def begin(self, point: Point) -> None:
        if self._inert:
            return
        self._selection = None
        self._start = point
        self._end = point

    def move(self, point: Point) -> None:
        if self._start is None:
            return
        self._end = point

    def end(self) -> Optional[BoundingBox]:
        """Finish the drag; returns the accepted box or ``None`` when it was too small."""
        if self._start is None or self._end is None:
            self._start = self._end = None
            return None
        box = self._normalised(self._start, self._end)
        self._start = self._end = None
        if box.width < self.min_size or box.height < self.min_size:
            logger.debug("Discarding %.1fx%.1f area selection", box.width, box.height)
            return None
        pixel_box = box.rounded()
        if pixel_box.width <= 0 or pixel_box.height <= 0:
            return None
        self._selection = box
        self.area_selected.emit(crop_image(self._image, pixel_box), box)
        return box

    def _normalised(self, a: Point, b: Point) -> BoundingBox:
        box = BoundingBox.from_corners(a, b)
        left = min(max(box.x, 0.0), float(self._image.width))
        top = min(max(box.y, 0.0), float(self._image.height))
        right = min(max(box.right, 0.0), float(self._image.width))
        bottom = min(max(box.bottom, 0.0), float(self._image.height))
        return BoundingBox(left, top, right - left, bottom - top)

    # ------------------------------------------------------------------
    def render_overlay(self) -> np.ndarray:
        canvas = blank_overlay((self._image.height, self._image.width))
        box = self.selection
        if box is None or box.width == 0 or box.height == 0:
            return canvas
        top_left = to_fixed(Point(box.x + 0.5, box.y + 0.5))
        bottom_right = to_fixed(Point(box.right - 0.5, box.bottom - 0.5))
        cv2.rectangle(canvas, top_left, bottom_right, AREA_FILL, -1, cv2.LINE_8, SHIFT)
        thickness = max(2.0, self._image.width / 200.0)
        corners = [
            Point(box.x, box.y),
            Point(box.right, box.y),
            Point(box.right, box.bottom),
            Point(box.x, box.bottom),
        ]
        for start, end in zip(corners, corners[1:] + corners[:1]):
            draw_dashed_line(canvas, start, end, RUBBER_BAND_ORANGE, thickness, dash=6, gap=4)
        return canvas
