"""Interactive bounding box used to scope smart (local) edits."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from PySide6.QtCore import QObject, Signal

from ..core.geometry import BoundingBox, Point
from ..settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)

MOVE = "move"
CORNER_HANDLES: Tuple[str, ...] = ("tl", "tr", "br", "bl")
EDGE_HANDLES: Tuple[str, ...] = ("t", "r", "b", "l")
HANDLES: Tuple[str, ...] = CORNER_HANDLES + EDGE_HANDLES


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class BoundingBoxController(QObject):
    """
    Move/resize state machine for the single authoritative edit box.

    A drag always starts from the box captured at ``begin``; each pointer
    move re-derives the box from that snapshot so rounding never drifts.
    The result is clamped (never rejected) so that the box keeps at least
    ``min_size`` on each side and stays inside the image.
    """

    box_changed = Signal(object)  # Emits BoundingBox while dragging
    box_committed = Signal(object)  # Emits BoundingBox on pointer release

    def __init__(
        self,
        image_width: int,
        image_height: int,
        box: Optional[BoundingBox] = None,
        settings: Optional[EngineSettings] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        settings = settings or get_settings()
        self.min_size = float(settings.min_box_size)
        self._image_width = float(image_width)
        self._image_height = float(image_height)
        self._box = self._clamped(box) if box is not None else self._default_box()
        self._handle: Optional[str] = None
        self._start_pointer: Optional[Point] = None
        self._start_box: Optional[BoundingBox] = None
        self._inert = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def box(self) -> BoundingBox:
        return self._box

    @property
    def handle(self) -> Optional[str]:
        return self._handle

    @property
    def mode(self) -> str:
        if self._handle is None:
            return "idle"
        return "moving" if self._handle == MOVE else "resizing"

    @property
    def image_size(self) -> Tuple[float, float]:
        return self._image_width, self._image_height

    @property
    def is_inert(self) -> bool:
        return self._inert

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_inert(self, inert: bool) -> None:
        if inert and self._handle is not None:
            self.cancel()
        self._inert = bool(inert)

    def set_image_size(self, width: int, height: int) -> None:
        self.cancel()
        self._image_width = float(width)
        self._image_height = float(height)
        self.set_box(self._box)

    def set_box(self, box: BoundingBox) -> None:
        """Replace the box; outside a drag the new box is committed straight away."""
        self._box = self._clamped(box)
        self.box_changed.emit(self._box)
        if self._handle is None:
            self.box_committed.emit(self._box)

    def reset(self, box: Optional[BoundingBox] = None) -> None:
        self.cancel()
        self.set_box(box if box is not None else self._default_box())

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def hit_test(self, pointer: Point, tolerance: float = 12.0) -> Optional[str]:
        """Return the handle under ``pointer`` (corners win over edges), ``move`` on the border, else ``None``."""
        box = self._box
        xs = {"l": box.x, "r": box.right}
        ys = {"t": box.y, "b": box.bottom}
        cx = box.x + box.width / 2.0
        cy = box.y + box.height / 2.0
        for handle in CORNER_HANDLES:
            if pointer.distance_to(Point(xs[handle[1]], ys[handle[0]])) <= tolerance:
                return handle
        edge_centres = {"t": Point(cx, box.y), "b": Point(cx, box.bottom), "l": Point(box.x, cy), "r": Point(box.right, cy)}
        for handle, centre in edge_centres.items():
            if pointer.distance_to(centre) <= tolerance:
                return handle
        inside_outer = (
            box.x - tolerance <= pointer.x <= box.right + tolerance
            and box.y - tolerance <= pointer.y <= box.bottom + tolerance
        )
        inside_inner = (
            box.x + tolerance < pointer.x < box.right - tolerance
            and box.y + tolerance < pointer.y < box.bottom - tolerance
        )
        if inside_outer and not inside_inner:
            return MOVE
        return None

    def begin(self, handle: str, pointer: Point) -> None:
        if self._inert:
            logger.debug("Ignoring box interaction while inert")
            return
        if handle != MOVE and handle not in HANDLES:
            raise ValueError(f"Unknown box handle: {handle}")
        self._handle = handle
        self._start_pointer = pointer
        self._start_box = self._box

    def drag(self, pointer: Point, scale: float = 1.0) -> BoundingBox:
        """Apply the pointer delta (scaled into image pixels) to the captured box."""
        if self._handle is None or self._start_pointer is None or self._start_box is None:
            return self._box
        dx = (pointer.x - self._start_pointer.x) * scale
        dy = (pointer.y - self._start_pointer.y) * scale
        if self._handle == MOVE:
            self._box = self._moved(self._start_box, dx, dy)
        else:
            self._box = self._resized(self._start_box, self._handle, dx, dy)
        self.box_changed.emit(self._box)
        return self._box

    def end(self) -> BoundingBox:
        if self._handle is not None:
            logger.debug("Box %s finished at %s", self._handle, self._box.to_dict())
            self.box_committed.emit(self._box)
        self._handle = None
        self._start_pointer = None
        self._start_box = None
        return self._box

    def cancel(self) -> None:
        """Abort an interaction and restore the box captured at ``begin``."""
        if self._start_box is not None:
            self._box = self._start_box
            self.box_changed.emit(self._box)
        self._handle = None
        self._start_pointer = None
        self._start_box = None

    # ------------------------------------------------------------------
    # Constraint helpers
    # ------------------------------------------------------------------
    def _min_sizes(self) -> Tuple[float, float]:
        return min(self.min_size, self._image_width), min(self.min_size, self._image_height)

    def _default_box(self) -> BoundingBox:
        min_w, min_h = self._min_sizes()
        width = max(min_w, self._image_width / 2.0)
        height = max(min_h, self._image_height / 2.0)
        return BoundingBox((self._image_width - width) / 2.0, (self._image_height - height) / 2.0, width, height)

    def _clamped(self, box: BoundingBox) -> BoundingBox:
        min_w, min_h = self._min_sizes()
        width = _clamp(box.width, min_w, self._image_width)
        height = _clamp(box.height, min_h, self._image_height)
        x = _clamp(box.x, 0.0, self._image_width - width)
        y = _clamp(box.y, 0.0, self._image_height - height)
        return BoundingBox(x, y, width, height)

    def _moved(self, start: BoundingBox, dx: float, dy: float) -> BoundingBox:
        return self._clamped(start.translated(dx, dy))

    def _resized(self, start: BoundingBox, handle: str, dx: float, dy: float) -> BoundingBox:
        min_w, min_h = self._min_sizes()
        left, top, right, bottom = start.x, start.y, start.right, start.bottom
        if "l" in handle:
            left = _clamp(left + dx, 0.0, right - min_w)
        if "r" in handle:
            right = _clamp(right + dx, left + min_w, self._image_width)
        if "t" in handle:
            top = _clamp(top + dy, 0.0, bottom - min_h)
        if "b" in handle:
            bottom = _clamp(bottom + dy, top + min_h, self._image_height)
        return self._clamped(BoundingBox(left, top, right - left, bottom - top))
