import itertools

import pytest

from annot8.core.geometry import Rect, SelectionBounds, union_bounds


def test_union_of_single_rect_is_that_rect():
    rect = Rect(3.0, 4.0, 10.0, 5.0)
    assert union_bounds([rect]) == rect


def test_union_covers_all_rects():
    rects = [Rect(10, 10, 5, 5), Rect(0, 20, 2, 2), Rect(12, 0, 10, 1)]
    assert union_bounds(rects) == Rect(0, 0, 22, 22)


def test_union_is_order_independent():
    rects = [Rect(10, 10, 5, 5), Rect(0, 20, 2, 2), Rect(12, 0, 10, 1), Rect(-4, 3, 1, 1)]
    expected = union_bounds(rects)
    for permutation in itertools.permutations(rects):
        assert union_bounds(list(permutation)) == expected


def test_union_of_nothing_raises():
    with pytest.raises(ValueError):
        union_bounds([])


def test_contains_strict_excludes_edges():
    rect = Rect(0, 0, 10, 10)
    assert rect.contains_strict(5, 5)
    assert not rect.contains_strict(0, 5)
    assert not rect.contains_strict(10, 5)
    assert not rect.contains_strict(5, 10)


def test_adjusted_grows_every_side():
    assert Rect(10, 10, 4, 4).adjusted(2) == Rect(8, 8, 8, 8)


def test_selection_bounds_default_not_ready():
    assert SelectionBounds().ready is False
    assert SelectionBounds.from_rect(Rect(1, 2, 3, 4)).ready is True
