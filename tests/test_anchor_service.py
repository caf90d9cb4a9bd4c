import pytest

from annot8.core.document import TextLayer, TextRange
from annot8.core.errors import AnchorResolutionError

from .conftest import BRAVE


def test_round_trip_on_unchanged_document(root, anchor_service):
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    resolved = anchor_service.deserialize(anchor, root)

    assert resolved == TextRange(*BRAVE)
    assert root.text_in(resolved) == anchor["exact"] == "brave"


def test_anchor_follows_shifted_text(root, anchor_service):
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    root.set_layer(TextLayer.from_lines(["Oh Hello brave new world", "second line here"]))

    resolved = anchor_service.deserialize(anchor, root)
    assert resolved == TextRange(9, 14)
    assert root.text_in(resolved) == "brave"


def test_context_picks_the_right_occurrence(root, anchor_service):
    root.set_layer(TextLayer.from_lines(["a brave b", "c brave d"]))
    anchor = anchor_service.serialize(TextRange(12, 17), root)
    root.set_layer(TextLayer.from_lines(["x a brave b", "c brave d"]))

    resolved = anchor_service.deserialize(anchor, root)
    assert resolved == TextRange(14, 19)


def test_removed_text_fails_to_resolve(root, anchor_service):
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    root.set_layer(TextLayer.from_lines(["Hello new world", "second line here"]))

    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize(anchor, root)


def test_malformed_anchor_fails_to_resolve(root, anchor_service):
    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize({"start": 1}, root)
    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize(None, root)
    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize({"start": 0, "end": 1, "exact": 5}, root)
    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize({"start": 6, "end": 11, "exact": "brave", "prefix": 3}, root)


@pytest.mark.parametrize("start, end", [(-2, 100), (11, 6), (-5, 11)])
def test_invalid_span_fails_to_resolve(root, anchor_service, start, end):
    exact = root.text[start:end] or "brave"
    with pytest.raises(AnchorResolutionError):
        anchor_service.deserialize({"start": start, "end": end, "exact": exact}, root)


def test_span_past_the_end_falls_back_to_search(root, anchor_service):
    anchor = {"start": 60, "end": 65, "exact": "brave"}
    assert anchor_service.deserialize(anchor, root) == TextRange(*BRAVE)


def test_null_context_is_treated_as_empty(root, anchor_service):
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    anchor["prefix"] = None
    anchor["suffix"] = None
    root.set_layer(TextLayer.from_lines(["Oh Hello brave new world", "second line here"]))

    assert anchor_service.deserialize(anchor, root) == TextRange(9, 14)
