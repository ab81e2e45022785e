"""Helpers for building the RGBA preview overlays shown above the source image."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import cv2
import numpy as np

from .geometry import Point
from .mask import SHIFT, to_fixed

RGBA = Tuple[int, int, int, int]

SELECTION_RED: Tuple[int, int, int] = (239, 68, 68)
RUBBER_BAND_ORANGE: RGBA = (249, 115, 22, 255)
CLOSE_TARGET_GREEN: RGBA = (34, 197, 94, 255)
VERTEX_OUTLINE: RGBA = (255, 255, 255, 255)


def blank_overlay(shape: Tuple[int, int]) -> np.ndarray:
    return np.zeros((shape[0], shape[1], 4), dtype=np.uint8)


def overlay_color(rgb: Sequence[int], opacity: float) -> RGBA:
    alpha = int(round(max(0.0, min(1.0, opacity)) * 255))
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), alpha)


def mask_overlay(mask: np.ndarray, rgb: Sequence[int], opacity: float) -> np.ndarray:
    """Tint selected pixels with ``rgb`` at ``opacity``; everything else stays transparent."""
    lut = np.zeros((256, 4), dtype=np.uint8)
    lut[1:] = np.array(overlay_color(rgb, opacity), dtype=np.uint8)
    return lut[mask]


def draw_polyline(
    canvas: np.ndarray,
    points: Sequence[Point],
    color: RGBA,
    thickness: float,
    closed: bool = False,
) -> None:
    if len(points) < 2:
        return
    width = max(1, int(round(thickness)))
    ordered = list(points) + ([points[0]] if closed else [])
    for start, end in zip(ordered[:-1], ordered[1:]):
        cv2.line(canvas, to_fixed(start), to_fixed(end), color, width, cv2.LINE_AA, SHIFT)


def draw_dashed_line(
    canvas: np.ndarray,
    start: Point,
    end: Point,
    color: RGBA,
    thickness: float = 1.0,
    dash: float = 8.0,
    gap: float = 8.0,
) -> None:
    """Draw ``start -> end`` as alternating dashes and gaps, measured in image pixels."""
    length = start.distance_to(end)
    if length == 0:
        return
    ux = (end.x - start.x) / length
    uy = (end.y - start.y) / length
    width = max(1, int(round(thickness)))
    period = dash + gap
    for index in range(int(math.ceil(length / period))):
        offset = index * period
        stop = min(offset + dash, length)
        a = Point(start.x + ux * offset, start.y + uy * offset)
        b = Point(start.x + ux * stop, start.y + uy * stop)
        cv2.line(canvas, to_fixed(a), to_fixed(b), color, width, cv2.LINE_AA, SHIFT)


def draw_vertex_markers(
    canvas: np.ndarray,
    points: Sequence[Point],
    radius: float,
    color: RGBA,
    first_color: RGBA = CLOSE_TARGET_GREEN,
) -> None:
    """Disc per vertex; the first one uses ``first_color`` to mark the closing target."""
    fixed_radius = int(round(radius * (1 << SHIFT)))
    for index, point in enumerate(points):
        fill = first_color if index == 0 else color
        cv2.circle(canvas, to_fixed(point), fixed_radius, fill, -1, cv2.LINE_AA, SHIFT)
        cv2.circle(canvas, to_fixed(point), fixed_radius, VERTEX_OUTLINE, 1, cv2.LINE_AA, SHIFT)
