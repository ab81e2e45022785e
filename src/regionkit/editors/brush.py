"""Freehand brush selection."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
from PySide6.QtCore import QObject

from ..core.geometry import BoundingBox, Point, Stroke
from ..core.image import SourceImage
from ..core.mask import SELECTED, UNSELECTED, MaskBuffer, stroke_coverage
from ..core.overlay import overlay_color
from ..settings import EngineSettings
from .base import MaskEditor

logger = logging.getLogger(__name__)


class BrushEditor(MaskEditor):
    """
    Accumulates round-capped strokes and rasterises them into the mask.

    While a stroke is in progress each new segment is painted straight into
    a transient preview mask and the RGBA overlay so the UI can give
    immediate feedback; the authoritative mask is only rebuilt on commit.
    """

    def __init__(
        self,
        image: SourceImage,
        settings: Optional[EngineSettings] = None,
        clip_box: Optional[BoundingBox] = None,
        brush_width: Optional[float] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(image, settings, clip_box, parent)
        self._brush_width = 1.0
        self.set_brush_width(brush_width if brush_width is not None else self._settings.brush_width)
        self._current: List[Point] = []
        self._current_width = self._brush_width
        self._current_mode = self._selection_mode
        self._preview: Optional[MaskBuffer] = None
        self._overlay: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    @property
    def brush_width(self) -> float:
        return self._brush_width

    def set_brush_width(self, width: float) -> None:
        self._brush_width = max(1.0, float(width))

    @property
    def current_points(self) -> tuple:
        return tuple(self._current)

    @property
    def preview_mask(self) -> MaskBuffer:
        """Mask including the in-progress stroke (the committed mask when idle)."""
        return self._preview if self._preview is not None else self._mask

    def has_pending_input(self) -> bool:
        return bool(self._current)

    # ------------------------------------------------------------------
    # Pointer gestures
    # ------------------------------------------------------------------
    def begin_stroke(self, point: Point) -> None:
        if self._inert:
            logger.debug("Ignoring stroke start while inert")
            return
        self._current = [point]
        self._current_width = self._brush_width
        self._current_mode = self._selection_mode
        self._preview = self._mask.copy()
        self._overlay = self._committed_overlay()
        self._paint_preview([point])

    def extend_stroke(self, point: Point) -> None:
        if self._inert or not self._current:
            return
        previous = self._current[-1]
        self._current.append(point)
        self._paint_preview([previous, point])

    def commit_stroke(self) -> bool:
        if self._inert or not self._current:
            return False
        stroke = Stroke(tuple(self._current), self._current_width, self._current_mode)
        self._reset_pending()
        logger.debug("Committing %s stroke with %d point(s)", stroke.mode, len(stroke.points))
        self._commit_item(stroke)
        return True

    def cancel_stroke(self) -> None:
        self._reset_pending()

    # MaskEditor handle
    def commit(self) -> bool:
        return self.commit_stroke()

    def cancel(self) -> None:
        self.cancel_stroke()

    # ------------------------------------------------------------------
    def render_overlay(self) -> np.ndarray:
        if self._overlay is not None:
            return self._overlay.copy()
        return super().render_overlay()

    def _committed_overlay(self) -> np.ndarray:
        return super().render_overlay()

    def _render_item(self, mask: MaskBuffer, item: Stroke) -> None:
        mask.paint_stroke(item.points, item.width, item.selects, self._clip_box)

    def _paint_preview(self, points: List[Point]) -> None:
        coverage = stroke_coverage(self._mask.shape, points, self._current_width)
        selects = self._current_mode == "union"
        self._preview.paint(coverage, selects, self._clip_box)
        covered = self._preview.data == (SELECTED if selects else UNSELECTED)
        covered &= coverage > 0
        color = overlay_color(self._settings.overlay_color, self._settings.overlay_opacity)
        self._overlay[covered] = color if selects else (0, 0, 0, 0)

    def _reset_pending(self) -> None:
        self._current = []
        self._preview = None
        self._overlay = None
