import numpy as np
import pytest

from regionkit.core.geometry import BoundingBox, InvalidGeometry, Point
from regionkit.core.mask import SELECTED
from regionkit.core.overlay import CLOSE_TARGET_GREEN
from regionkit.editors import LassoEditor

SQUARE = [(0, 0), (100, 0), (100, 100), (0, 100)]


def place(editor, coords, display_ratio=1.0):
    return [editor.add_vertex(Point(*c), display_ratio) for c in coords]


def test_click_near_first_vertex_closes_square(image_512, settings, recorder):
    editor = LassoEditor(image_512, settings)
    ready = recorder(editor.mask_ready)

    assert place(editor, SQUARE) == [False] * 4
    assert editor.add_vertex(Point(5, 5)) is True

    shape = editor.history.items[0]
    assert len(shape.points) == 4
    assert editor.vertices == ()
    assert editor.mask.selected_count() == pytest.approx(shape.area(), rel=0.03)
    assert editor.mask.data[50, 50] == SELECTED
    assert editor.mask.data[150, 150] == 0
    assert len(ready.calls) == 1


def test_closing_needs_three_vertices(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, [(10, 10), (50, 10)])
    assert editor.add_vertex(Point(11, 11)) is False
    assert len(editor.vertices) == 3
    assert len(editor.history) == 0


def test_threshold_scales_with_display_ratio(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, [(100, 100), (300, 100), (300, 300)])
    # 30px away: outside the nominal 20px threshold, inside it at 2x display ratio
    assert editor.add_vertex(Point(130, 100), display_ratio=1.0) is False
    editor.cancel()
    place(editor, [(100, 100), (300, 100), (300, 300)])
    assert editor.add_vertex(Point(130, 100), display_ratio=2.0) is True


def test_explicit_close(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, [(10, 10), (50, 10)])
    with pytest.raises(InvalidGeometry):
        editor.close_shape()
    editor.add_vertex(Point(50, 50))
    editor.close_shape()
    assert len(editor.history) == 1
    assert editor.commit() is False


def test_shapes_union_and_undo_redo(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, SQUARE)
    editor.commit()
    place(editor, [(200, 200), (300, 200), (250, 300)])
    editor.commit()
    both = np.array(editor.mask.data, copy=True)
    assert editor.mask.data[250, 250] == SELECTED

    editor.undo()
    assert editor.mask.data[250, 250] == 0
    assert editor.mask.data[50, 50] == SELECTED
    editor.redo()
    assert np.array_equal(editor.mask.data, both)


def test_subtract_polygon(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, [(0, 0), (200, 0), (200, 200), (0, 200)])
    editor.commit()
    editor.set_selection_mode("subtract")
    place(editor, [(50, 50), (150, 50), (150, 150), (50, 150)])
    editor.commit()
    assert editor.mask.data[100, 100] == 0
    assert editor.mask.data[20, 20] == SELECTED


def test_polygon_is_clipped(image_512, settings):
    editor = LassoEditor(image_512, settings, clip_box=BoundingBox(0, 0, 50, 50))
    place(editor, SQUARE)
    editor.commit()
    assert editor.mask.selected_count() == 50 * 50


def test_undo_to_empty_emits_none(image_512, settings, recorder):
    editor = LassoEditor(image_512, settings)
    place(editor, SQUARE)
    editor.commit()
    ready = recorder(editor.mask_ready)
    editor.undo()
    assert ready.calls == [None]


def test_overlay_marks_closing_target(image_512, settings):
    editor = LassoEditor(image_512, settings)
    place(editor, [(40, 40), (120, 40), (120, 120)])
    editor.move_cursor(Point(60, 140))
    overlay = editor.render_overlay()
    assert overlay.shape == (512, 512, 4)
    assert tuple(overlay[40, 40]) == CLOSE_TARGET_GREEN
    assert overlay[40, 80, 3] > 0
    editor.leave()
    assert editor.cursor is None


def test_cancel_drops_vertices(image_512, settings, recorder):
    editor = LassoEditor(image_512, settings)
    ready = recorder(editor.mask_ready)
    place(editor, SQUARE)
    editor.cancel()
    assert editor.vertices == ()
    assert ready.calls == []
