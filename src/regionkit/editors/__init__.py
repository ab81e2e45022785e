"""Pointer-driven selection editors."""

from .area_selector import AreaSelector
from .base import MaskEditor
from .bounding_box import HANDLES, MOVE, BoundingBoxController
from .brush import BrushEditor
from .lasso import LassoEditor
from .line import LineEditor

__all__ = [
    "MaskEditor",
    "BrushEditor",
    "LineEditor",
    "LassoEditor",
    "BoundingBoxController",
    "AreaSelector",
    "HANDLES",
    "MOVE",
]
