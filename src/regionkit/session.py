"""
Smart-edit orchestration: crop, generate, composite.

The generator is an opaque callable supplied by the application. While it
runs every registered editor is inert, and whatever happens the editors are
re-enabled with their mask and box exactly as they were before the call.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Union

import cv2

from .core.compositor import CompositeOptions, composite, crop_image
from .core.image import SourceImage
from .core.mask import MaskBuffer
from .editors.area_selector import AreaSelector
from .editors.base import MaskEditor
from .editors.bounding_box import BoundingBoxController
from .settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)

Generator = Callable[[SourceImage, SourceImage, str], Sequence[SourceImage]]
Inertable = Union[MaskEditor, BoundingBoxController, AreaSelector]


class GenerationFailed(RuntimeError):
    """The external generator raised; the selection state is untouched."""


class SmartEditSession:
    """
    Ties one source image to its mask editors, edit box and generator.

    ``generate`` runs the smart-edit flow when a bounding box controller is
    attached (crop source and mask to the box, regenerate the crop, composite
    each result back) and plain inpainting on the full image otherwise.
    """

    def __init__(
        self,
        image: SourceImage,
        generator: Generator,
        settings: Optional[EngineSettings] = None,
        box_controller: Optional[BoundingBoxController] = None,
        resize_results: bool = True,
    ) -> None:
        self._settings = settings or get_settings()
        self._image = image
        self._generator = generator
        self._box_controller = box_controller
        self._editors: List[MaskEditor] = []
        self._participants: List[Inertable] = [box_controller] if box_controller is not None else []
        self._active: Optional[MaskEditor] = None
        self._pending = False
        self.resize_results = resize_results
        self.options = CompositeOptions(
            expansion=self._settings.expansion,
            edge_blend=self._settings.edge_blend,
        )
        if box_controller is not None:
            box_controller.box_committed.connect(self._on_box_committed)

    # ------------------------------------------------------------------
    @property
    def image(self) -> SourceImage:
        return self._image

    @property
    def active_editor(self) -> Optional[MaskEditor]:
        return self._active

    @property
    def box_controller(self) -> Optional[BoundingBoxController]:
        return self._box_controller

    @property
    def is_pending(self) -> bool:
        return self._pending

    def add_editor(self, editor: MaskEditor, activate: bool = True) -> MaskEditor:
        self._editors.append(editor)
        self._participants.append(editor)
        if self._box_controller is not None:
            editor.set_clip_box(self._box_controller.box)
        if activate or self._active is None:
            self._active = editor
        return editor

    def add_participant(self, participant: Inertable) -> None:
        """Register anything else that must stay inert while generating (e.g. an AreaSelector)."""
        self._participants.append(participant)

    def activate(self, editor: MaskEditor) -> None:
        if editor not in self._editors:
            raise ValueError("Editor is not registered with this session")
        self._active = editor

    def load_image(self, image: SourceImage) -> None:
        """Replace the source image; editors discard their history and the box is re-clamped."""
        self._image = image
        # Editors drop their history before the re-clamped box is committed to them
        for participant in self._participants:
            if not isinstance(participant, BoundingBoxController):
                participant.load_image(image)
        for participant in self._participants:
            if isinstance(participant, BoundingBoxController):
                participant.set_image_size(image.width, image.height)
        self._sync_clip_box()

    def load_base64(self, data: str, mime_type: str) -> None:
        self.load_image(SourceImage.from_base64(data, mime_type))

    # ------------------------------------------------------------------
    def current_mask(self) -> Optional[MaskBuffer]:
        if self._active is None or self._active.mask_image() is None:
            return None
        return self._active.mask

    def _sync_clip_box(self) -> None:
        box = self._box_controller.box if self._box_controller is not None else None
        for editor in self._editors:
            editor.set_clip_box(box)

    def _on_box_committed(self, _box) -> None:
        self._sync_clip_box()

    def _set_inert(self, inert: bool, participants: Iterable[Inertable]) -> None:
        for participant in participants:
            participant.set_inert(inert)

    def _call_generator(self, source: SourceImage, mask: SourceImage, prompt: str) -> List[SourceImage]:
        participants = list(self._participants)
        self._pending = True
        self._set_inert(True, participants)
        try:
            results = list(self._generator(source, mask, prompt))
        except Exception as exc:
            logger.error("Generation failed: %s", exc)
            raise GenerationFailed(str(exc)) from exc
        finally:
            self._set_inert(False, participants)
            self._pending = False
        logger.debug("Generator returned %d image(s)", len(results))
        return results

    def generate(self, prompt: str) -> List[SourceImage]:
        """Run the edit for ``prompt``; raises ``ValueError`` when no mask is selected."""
        if self._pending:
            raise RuntimeError("A generation is already pending")
        mask = self.current_mask()
        if mask is None:
            raise ValueError("Select a region before generating")

        if self._box_controller is None:
            return self._call_generator(self._image, mask.to_image(), prompt)

        box = self._box_controller.box.rounded()
        source_crop = crop_image(self._image, box)
        mask_crop = crop_image(mask.to_image(), box)
        results = self._call_generator(source_crop, mask_crop, prompt)

        merged: List[SourceImage] = []
        for region in results:
            if region.size != source_crop.size and self.resize_results:
                logger.debug("Resizing %dx%d result to %dx%d box", region.width, region.height, *source_crop.size)
                region = region.with_pixels(
                    cv2.resize(region.pixels, source_crop.size, interpolation=cv2.INTER_AREA)
                )
            merged.append(composite(self._image, region, box, mask, self.options))
        return merged
