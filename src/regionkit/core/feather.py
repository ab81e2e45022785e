"""Signed-distance edge feathering utilities."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.ndimage import distance_transform_edt


@dataclass(frozen=True)
class FeatherParameters:
    """Runtime parameters for edge feathering."""

    inside_width_px: float = 0.0
    outside_width_px: float = 0.0
    smooth: bool = False
    border_is_edge: bool = True

    def is_active(self) -> bool:
        return self.inside_width_px + self.outside_width_px > 0.0


def dilate(mask: np.ndarray, radius_px: float) -> np.ndarray:
    """Grow a boolean mask by ``radius_px`` (Euclidean disc structuring element)."""
    if mask.dtype != np.bool_:
        mask = mask.astype(bool)
    if radius_px <= 0 or not mask.any() or mask.all():
        return mask.copy()
    return distance_transform_edt(~mask) <= radius_px


def signed_distance_alpha(mask: np.ndarray, params: FeatherParameters) -> np.ndarray:
    """
    Convert a binary (bool) mask to a feathered alpha matte using signed distances.

    Parameters
    ----------
    mask:
        Boolean mask where ``True`` marks pixels taken from the new content.
    params:
        Feathering parameters. ``inside_width_px`` is the length of the ramp
        inside the mask, ``outside_width_px`` the length outside it. With
        ``border_is_edge`` the array border counts as unselected, so a mask
        touching the border still fades out towards it.
    """

    if mask.dtype != np.bool_:
        mask = mask.astype(bool)

    if not params.is_active():
        return mask.astype(np.float32)

    if not mask.any():
        return np.zeros_like(mask, dtype=np.float32)

    if params.border_is_edge:
        padded = np.pad(mask, 1, mode="constant", constant_values=False)
        inside = distance_transform_edt(padded)[1:-1, 1:-1]
        outside = distance_transform_edt(~padded)[1:-1, 1:-1]
    elif mask.all():
        return np.ones_like(mask, dtype=np.float32)
    else:
        inside = distance_transform_edt(mask)
        outside = distance_transform_edt(~mask)
    signed = inside - outside  # Positive inside, negative outside

    span = params.inside_width_px + params.outside_width_px
    t = (signed + params.outside_width_px) / span
    t_clamped = np.clip(t, 0.0, 1.0).astype(np.float32)
    if params.smooth:
        # Smoothstep easing keeps edges soft but bounded in [0, 1]
        t_clamped = t_clamped * t_clamped * (3.0 - 2.0 * t_clamped)
    return t_clamped.astype(np.float32)
