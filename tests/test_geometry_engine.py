import pytest

from annot8.core.annotations import Annotation, AnnotationStore
from annot8.core.document import TextLayer, TextRange
from annot8.core.geometry import CanvasOffset, Highlight, Rect
from annot8.core.geometry.engine import GeometryEngine, hit_test

from .conftest import BRAVE


@pytest.fixture
def geometry(qapp, environment, anchor_service, root):
    return GeometryEngine(environment, anchor_service, root)


@pytest.fixture
def brave(root, anchor_service):
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    annotation = Annotation(quote="brave", anchor=anchor, tag="note")
    annotation.id = 0
    return annotation


def test_resolve_rects_is_root_relative(geometry, brave):
    assert geometry.resolve_rects(brave) == [Rect(48.0, 0.0, 40.0, 16.0)]


def test_rects_are_stable_under_scroll(geometry, environment, brave):
    before = geometry.resolve_rects(brave)
    environment.scroll_to(0.0, 30.0)
    assert geometry.resolve_rects(brave) == before


def test_rects_are_stable_when_root_moves(geometry, root, brave):
    before = geometry.resolve_rects(brave)
    root.move_to(300.0, 400.0)
    assert geometry.resolve_rects(brave) == before


def test_removed_text_resolves_to_nothing(qapp, geometry, root, brave):
    store = AnnotationStore()
    store.load([brave])
    root.set_layer(TextLayer.from_lines(["Hello new world", "second line here"]))

    assert geometry.resolve_rects(brave) == []
    assert geometry.draw(store.annotations) == []
    assert len(store) == 1


def test_draw_builds_highlights_in_document_order(geometry, root, anchor_service, brave):
    second = Annotation(
        quote="world\nsecond",
        anchor=anchor_service.serialize(TextRange(16, 28), root),
        tag="x",
    )
    second.id = 1

    highlights = geometry.draw([brave, second])

    assert [(h.id, h.tag) for h in highlights] == [(0, "note"), (1, "x"), (1, "x")]
    assert highlights[0] == Highlight(48.0, 0.0, 40.0, 16.0, 0, brave.uid, "note")
    assert second.rects == [Rect(128.0, 0.0, 40.0, 16.0), Rect(0.0, 16.0, 48.0, 16.0)]


def test_draw_measures_canvas(geometry, brave):
    geometry.draw([brave])
    assert geometry.canvas == Rect(100.0, 50.0, 168.0, 32.0)


def test_selection_bounds_are_in_page_coordinates(geometry, environment):
    bounds = geometry.range_bounds(TextRange(*BRAVE))
    assert (bounds.x, bounds.y, bounds.width, bounds.height, bounds.ready) == \
        (148.0, 50.0, 40.0, 16.0, True)

    environment.scroll_to(0.0, 30.0)
    scrolled = geometry.range_bounds(TextRange(*BRAVE))
    assert (scrolled.x, scrolled.y) == (148.0, 50.0)


def test_multi_line_selection_bounds(geometry):
    bounds = geometry.range_bounds(TextRange(6, 30))
    assert (bounds.x, bounds.y, bounds.width, bounds.height) == (100.0, 50.0, 168.0, 32.0)


def test_collapsed_range_has_no_bounds(geometry):
    assert geometry.range_bounds(TextRange(3, 3)) is None


def test_canvas_offset_is_computed_on_idle_tick(qtbot, geometry, brave):
    assert geometry.canvas_offset is None
    with qtbot.waitSignal(geometry.offset_changed, timeout=1000) as blocker:
        geometry.draw([brave])
    assert blocker.args == [CanvasOffset(20.0, 10.0)]
    assert geometry.canvas_offset == CanvasOffset(20.0, 10.0)


def test_canvas_offset_is_cached_until_invalidated(geometry, environment, brave):
    geometry.draw([brave])
    geometry.flush_offset()
    environment.set_canvas(Rect(0.0, 0.0, 10.0, 10.0))

    geometry.draw([brave])
    assert not geometry.flush_offset()
    assert geometry.canvas_offset == CanvasOffset(20.0, 10.0)

    geometry.invalidate_offset()
    assert geometry.canvas_offset is None
    geometry.draw([brave])
    geometry.flush_offset()
    assert geometry.canvas_offset == CanvasOffset(100.0, 50.0)


def test_missing_canvas_leaves_offset_unset(geometry, environment, brave):
    environment.set_canvas(None)
    geometry.draw([brave])
    geometry.flush_offset()
    assert geometry.canvas_offset is None


def test_to_root_coordinates(geometry, environment):
    assert geometry.to_root_coordinates(160.0, 58.0) == (60.0, 8.0)
    environment.scroll_to(0.0, 30.0)
    assert geometry.to_root_coordinates(160.0, 58.0) == (60.0, 8.0)


def test_hit_test_uses_padding_strictly():
    highlight = Highlight(48.0, 0.0, 40.0, 16.0, 0, "uid", "note")
    assert hit_test([highlight], 60.0, 8.0) is highlight
    assert hit_test([highlight], 47.0, 8.0) is highlight
    assert hit_test([highlight], 60.0, -1.5) is highlight
    assert hit_test([highlight], 46.0, 8.0) is None
    assert hit_test([highlight], 90.0, 8.0) is None
    assert hit_test([highlight], 200.0, 200.0) is None


def test_hit_test_first_in_document_order_wins():
    first = Highlight(0.0, 0.0, 50.0, 16.0, 0, "a")
    second = Highlight(10.0, 0.0, 50.0, 16.0, 1, "b")
    assert hit_test([first, second], 20.0, 8.0) is first
    assert hit_test([second, first], 20.0, 8.0) is second
