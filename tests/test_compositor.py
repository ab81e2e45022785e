import numpy as np
import pytest
from pydantic import ValidationError

from conftest import gradient_image, make_image
from regionkit.core.compositor import (
    CompositeOptions,
    DimensionMismatch,
    OutOfBounds,
    blend_alpha,
    composite,
    crop_image,
)
from regionkit.core.geometry import BoundingBox, Point
from regionkit.core.image import SourceImage
from regionkit.core.mask import MaskBuffer

BOX = BoundingBox(10, 10, 50, 50)


def box_mask(width=80, height=80, box=BOX) -> MaskBuffer:
    mask = MaskBuffer(width, height)
    mask.paint_polygon(
        [Point(box.x, box.y), Point(box.right, box.y), Point(box.right, box.bottom), Point(box.x, box.bottom)]
    )
    return mask


def test_defaults_match_smart_edit_flow():
    options = CompositeOptions()
    assert options.expansion == 0
    assert options.edge_blend == 3


def test_negative_options_are_rejected():
    with pytest.raises(ValidationError):
        CompositeOptions(edge_blend=-1)


def test_pixels_outside_box_are_untouched():
    original = gradient_image(80, 80)
    region = make_image(50, 50, value=200)
    mask = MaskBuffer(80, 80)
    mask.fill(True)
    result = composite(original, region, BOX, mask, CompositeOptions(expansion=0, edge_blend=0))

    outside = np.ones((80, 80), dtype=bool)
    outside[10:60, 10:60] = False
    assert np.array_equal(result.pixels[outside], original.pixels[outside])
    assert np.all(result.pixels[10:60, 10:60] == 200)
    assert result.size == original.size
    assert result.mime_type == original.mime_type


def test_unselected_pixels_inside_box_keep_original():
    original = gradient_image(80, 80)
    region = make_image(50, 50, value=255)
    mask = MaskBuffer(80, 80)
    mask.paint_polygon([Point(30, 30), Point(40, 30), Point(40, 40), Point(30, 40)])
    result = composite(original, region, BOX, mask, CompositeOptions(edge_blend=2))
    unselected = ~mask.as_bool()
    assert np.array_equal(result.pixels[unselected], original.pixels[unselected])


def test_seam_is_monotonic_towards_the_interior():
    original = make_image(80, 80, channels=1, value=0)
    region = make_image(50, 50, channels=1, value=200)
    result = composite(original, region, BOX, box_mask(), CompositeOptions(edge_blend=5))

    row = result.pixels[35, 10:36].astype(int)
    assert np.all(np.diff(row) >= 0)
    assert 0 < row[0] < 200
    assert row[-1] == 200
    assert result.pixels[35, 9] == 0


def test_larger_blend_widens_the_ramp():
    mask = np.zeros((50, 50), dtype=bool)
    mask[5:45, 5:45] = True
    narrow = blend_alpha(mask, CompositeOptions(edge_blend=2))
    wide = blend_alpha(mask, CompositeOptions(edge_blend=8))
    assert narrow[25, 7] == pytest.approx(1.0)
    assert wide[25, 7] < 1.0
    assert narrow[0, 0] == 0.0


def test_expansion_grows_the_selection():
    mask = np.zeros((40, 40), dtype=bool)
    mask[15:25, 15:25] = True
    alpha = blend_alpha(mask, CompositeOptions(expansion=3, edge_blend=0))
    assert alpha[20, 13] == 1.0
    assert alpha[20, 10] == 0.0


def test_region_channels_follow_original():
    original = make_image(80, 80, channels=3, value=10)
    region = make_image(50, 50, channels=4, value=90)
    result = composite(original, region, BOX, box_mask(), CompositeOptions(edge_blend=0))
    assert result.channels == 3
    assert np.all(result.pixels[20, 20] == 90)


def test_region_must_match_box():
    with pytest.raises(DimensionMismatch):
        composite(make_image(80, 80), make_image(40, 50), BOX, box_mask())


def test_mask_must_match_original():
    with pytest.raises(DimensionMismatch):
        composite(make_image(80, 80), make_image(50, 50), BOX, MaskBuffer(60, 60))


@pytest.mark.parametrize(
    "box",
    [BoundingBox(50, 50, 50, 50), BoundingBox(0, 0, 0, 10), BoundingBox(-5, 0, 20, 20)],
)
def test_box_must_lie_inside_original(box):
    with pytest.raises(OutOfBounds):
        composite(make_image(80, 80), make_image(max(int(box.width), 1), 20), box, box_mask())


def test_failed_composite_leaves_original_intact():
    original = gradient_image(80, 80)
    before = np.array(original.pixels, copy=True)
    with pytest.raises(DimensionMismatch):
        composite(original, make_image(10, 10), BOX, box_mask())
    assert np.array_equal(original.pixels, before)


def test_mask_may_be_an_image():
    original = make_image(80, 80)
    mask_image = box_mask().to_image()
    result = composite(original, make_image(50, 50, value=255), BOX, mask_image, CompositeOptions(edge_blend=0))
    assert np.all(result.pixels[30, 30] == 255)


def test_crop_image():
    original = gradient_image(80, 80)
    cropped = crop_image(original, BoundingBox(5.2, 7.6, 20, 10))
    assert cropped.size == (20, 10)
    assert np.array_equal(cropped.pixels, original.pixels[8:18, 5:25])
    with pytest.raises(OutOfBounds):
        crop_image(original, BoundingBox(70, 70, 20, 20))


def test_mask_may_be_a_raw_array():
    original = SourceImage(np.zeros((80, 80), dtype=np.uint8))
    mask = np.zeros((80, 80), dtype=np.uint8)
    mask[20:30, 20:30] = 255
    result = composite(original, make_image(50, 50, channels=1, value=50), BOX, mask, CompositeOptions(edge_blend=0))
    assert result.pixels[25, 25] == 50
    assert result.pixels[40, 40] == 0


def test_boolean_mask_selects_true_pixels():
    original = SourceImage(np.zeros((80, 80), dtype=np.uint8))
    mask = np.zeros((80, 80), dtype=bool)
    mask[20:30, 20:30] = True
    result = composite(original, make_image(50, 50, channels=1, value=50), BOX, mask, CompositeOptions(edge_blend=0))
    assert result.pixels[25, 25] == 50
    assert result.pixels[40, 40] == 0
