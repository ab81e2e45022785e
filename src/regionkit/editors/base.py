"""Shared plumbing for the mask-producing editors (brush, line, lasso)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np
from PySide6.QtCore import QObject, Signal

from ..core.geometry import BoundingBox, SelectionMode
from ..core.history import HistoryStack
from ..core.image import SourceImage
from ..core.mask import MaskBuffer
from ..core.overlay import mask_overlay
from ..settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)


class MaskEditor(QObject):
    """
    Owns one MaskBuffer and the history of committed items that produce it.

    The buffer is never patched incrementally: every commit, undo, redo or
    clear wipes it and replays the committed items in order. ``mask_ready``
    carries a PNG ``SourceImage`` of the full mask, or ``None`` once the mask
    has become empty through ``clear``, undo to zero items, or a new image.

    This is a base class and is not meant to be instantiated directly.
    Subclasses provide ``commit``, ``cancel``, ``has_pending_input`` and
    ``_render_item``; the base versions raise ``NotImplementedError``.
    """

    mask_ready = Signal(object)  # Emits Optional[SourceImage]
    history_changed = Signal(bool, bool)  # (can_undo, can_redo)

    def __init__(
        self,
        image: SourceImage,
        settings: Optional[EngineSettings] = None,
        clip_box: Optional[BoundingBox] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or get_settings()
        self._image = image
        self._mask = MaskBuffer(image.width, image.height)
        self._history: HistoryStack[Any] = HistoryStack()
        self._clip_box = clip_box
        self._selection_mode: SelectionMode = self._settings.selection_mode
        self._inert = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def image(self) -> SourceImage:
        return self._image

    @property
    def mask(self) -> MaskBuffer:
        return self._mask

    @property
    def history(self) -> HistoryStack[Any]:
        return self._history

    @property
    def clip_box(self) -> Optional[BoundingBox]:
        return self._clip_box

    @property
    def selection_mode(self) -> SelectionMode:
        return self._selection_mode

    @property
    def is_inert(self) -> bool:
        return self._inert

    def mask_image(self) -> Optional[SourceImage]:
        """Current mask for the generator, or ``None`` when nothing is committed."""
        if not self._history.items:
            return None
        return self._mask.to_image()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_selection_mode(self, mode: SelectionMode) -> None:
        if mode not in ("union", "subtract"):
            raise ValueError(f"Unknown selection mode: {mode}")
        self._selection_mode = mode

    def set_clip_box(self, box: Optional[BoundingBox]) -> None:
        """Restrict rasterisation to ``box``; committed items are replayed under the new clip."""
        if box == self._clip_box:
            return
        self._clip_box = box
        if self._history.items:
            self._rebuild()

    def set_inert(self, inert: bool) -> None:
        """While inert (a generation is pending) pointer input and history edits are ignored."""
        if inert and self.has_pending_input():
            self.cancel()
        self._inert = bool(inert)

    def load_image(self, image: SourceImage) -> None:
        """
        Switch to a new source image.

        Any in-progress input is cancelled without being committed, history
        is discarded and the mask is resized; owners receive ``mask_ready(None)``.
        """
        self.cancel()
        self._image = image
        self._mask = MaskBuffer(image.width, image.height)
        self._history.clear()
        logger.debug("%s loaded new %dx%d image", type(self).__name__, image.width, image.height)
        self._rebuild(is_clearing=True)

    def load_base64(self, data: str, mime_type: str) -> None:
        """Decode first so a DecodeFailure leaves the current image and mask untouched."""
        self.load_image(SourceImage.from_base64(data, mime_type))

    # ------------------------------------------------------------------
    # Imperative handle used by the owning UI layer
    # ------------------------------------------------------------------
    def commit(self) -> bool:
        raise NotImplementedError(f"{type(self).__name__} does not implement commit()")

    def cancel(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not implement cancel()")

    def has_pending_input(self) -> bool:
        raise NotImplementedError(f"{type(self).__name__} does not implement has_pending_input()")

    def clear(self) -> None:
        if self._inert:
            logger.debug("Ignoring clear while inert")
            return
        self.cancel()
        self._history.clear()
        self._rebuild(is_clearing=True)

    def undo(self) -> bool:
        if self._inert or not self._history.undo():
            return False
        self._rebuild(is_clearing=not self._history.items)
        return True

    def redo(self) -> bool:
        if self._inert or not self._history.redo():
            return False
        self._rebuild()
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_overlay(self) -> np.ndarray:
        """RGBA preview of the committed selection."""
        return mask_overlay(self._mask.data, self._settings.overlay_color, self._settings.overlay_opacity)

    def _render_item(self, mask: MaskBuffer, item: Any) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not implement _render_item()")

    def _commit_item(self, item: Any) -> None:
        self._history.commit(item)
        self._rebuild()

    def _rebuild(self, is_clearing: bool = False) -> None:
        self._mask.clear()
        items = self._history.items
        for item in items:
            self._render_item(self._mask, item)
        logger.debug(
            "%s rebuilt mask from %d item(s): %d selected pixels",
            type(self).__name__,
            len(items),
            self._mask.selected_count(),
        )
        self.history_changed.emit(self._history.can_undo, self._history.can_redo)
        if items:
            self.mask_ready.emit(self._mask.to_image())
        elif is_clearing:
            self.mask_ready.emit(None)
