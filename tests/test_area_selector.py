import numpy as np

from regionkit.core.geometry import BoundingBox, Point
from regionkit.editors import AreaSelector


def drag(selector, start, end):
    selector.begin(Point(*start))
    selector.move(Point(*end))
    return selector.end()


def test_small_drag_is_discarded(small_image, settings, recorder):
    selector = AreaSelector(small_image, settings)
    selected = recorder(selector.area_selected)
    assert drag(selector, (10, 10), (15, 40)) is None
    assert drag(selector, (10, 10), (40, 19)) is None
    assert selected.calls == []
    assert selector.selection is None


def test_drag_emits_cropped_area(small_image, settings, recorder):
    selector = AreaSelector(small_image, settings)
    selected = recorder(selector.area_selected)
    box = drag(selector, (60, 40), (10, 10))
    assert box == BoundingBox(10, 10, 50, 30)

    cropped, emitted_box = selected.last
    assert emitted_box == box
    assert cropped.size == (50, 30)
    assert np.array_equal(cropped.pixels, small_image.pixels[10:40, 10:60])
    assert selector.selection == box


def test_drag_is_clamped_to_image(small_image, settings):
    selector = AreaSelector(small_image, settings)
    box = drag(selector, (100, 80), (500, 500))
    assert box == BoundingBox(100, 80, 20, 20)


def test_clear_and_overlay(small_image, settings):
    selector = AreaSelector(small_image, settings)
    drag(selector, (10, 10), (60, 60))
    overlay = selector.render_overlay()
    assert overlay.shape == (100, 120, 4)
    assert overlay[30, 30, 3] > 0
    assert overlay[80, 100, 3] == 0

    selector.clear()
    assert selector.selection is None
    assert not selector.render_overlay().any()


def test_inert_selector_ignores_drags(small_image, settings, recorder):
    selector = AreaSelector(small_image, settings)
    selected = recorder(selector.area_selected)
    selector.set_inert(True)
    assert drag(selector, (10, 10), (60, 60)) is None
    assert selected.calls == []
