"""Straight-line selection: drag from a start point, release to commit."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject

from ..core.geometry import BoundingBox, Point
from ..core.image import SourceImage
from ..settings import EngineSettings
from .brush import BrushEditor


class LineEditor(BrushEditor):
    """A brush whose stroke is always the segment from the press point to the pointer."""

    def __init__(
        self,
        image: SourceImage,
        settings: Optional[EngineSettings] = None,
        clip_box: Optional[BoundingBox] = None,
        line_width: Optional[float] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(image, settings, clip_box, parent=parent)
        self.set_brush_width(line_width if line_width is not None else self._settings.line_width)

    def begin_line(self, point: Point) -> None:
        self.begin_stroke(point)

    def update_line(self, point: Point) -> None:
        self.extend_stroke(point)

    def commit_line(self) -> bool:
        return self.commit_stroke()

    def extend_stroke(self, point: Point) -> None:
        if self._inert or not self._current:
            return
        start = self._current[0]
        self._current = [start, point]
        self._preview = self._mask.copy()
        self._overlay = self._committed_overlay()
        self._paint_preview(self._current)
