import pytest
from PyQt5 import sip
from PyQt5.QtCore import Qt

from annot8 import Annot8Config, Annot8Engine, JsonFilePersistence
from annot8.core.document import (
    Element,
    StaticDocumentEnvironment,
    TextLayer,
    TextRange,
    find_root,
)

from .conftest import BRAVE


@pytest.fixture
def engine(qapp, environment):
    engine = Annot8Engine(environment)
    engine.start()
    yield engine
    engine.stop()


def select(engine, start, end):
    engine.environment.select(start, end)
    engine.selection_changed(TextRange(start, end))
    engine.controller.selection_debouncer.flush()


def test_root_found_by_first_matching_selector(environment, root):
    assert find_root(environment, ["main", "article"]) is root


def test_root_falls_back_to_heuristic_then_body():
    body = Element("body", TextLayer.from_lines(["everything"]))
    section = Element("section", TextLayer.from_lines(["content"]))
    environment = StaticDocumentEnvironment({"section": section}, body=body, fallback="section")
    assert find_root(environment, ["article"]) is section

    environment = StaticDocumentEnvironment({"section": section}, body=body)
    assert find_root(environment, ["article"]) is body


def test_start_uses_configured_selectors(qapp, environment, root):
    engine = Annot8Engine(environment, config=Annot8Config(selectors=["nope", "article"]))
    engine.start()
    assert engine.is_running
    assert engine.root is root
    engine.stop()
    assert not engine.is_running


def test_create_then_erase_scenario(engine):
    engine.load([])
    select(engine, *BRAVE)
    engine.annotate(tag="note")

    annotations = engine.annotations()
    assert len(annotations) == 1
    assert (annotations[0].id, annotations[0].tag) == (0, "note")

    engine.erase(0)
    assert engine.annotations() == []


def test_annotation_with_removed_text_stays_unrendered(engine, root):
    select(engine, *BRAVE)
    engine.annotate(tag="note")

    root.set_layer(TextLayer.from_lines(["Hello new world", "second line here"]))
    engine.resized()
    engine.controller.resize_debouncer.flush()

    state = engine.state()
    assert len(state.annotations) == 1
    assert state.highlights == []
    assert engine.geometry.resolve_rects(state.annotations[0]) == []


def test_malformed_stored_anchors_are_kept_but_not_drawn(engine):
    engine.load([
        {"quote": "x", "anchor": {"exact": 5, "start": 0, "end": 1}},
        {"quote": "re", "anchor": {"exact": "re", "start": -2, "end": 100}},
        {"quote": "brave", "anchor": {"exact": "brave", "start": 0, "end": 5,
                                      "prefix": None, "suffix": None}},
    ])

    state = engine.state()
    assert len(state.annotations) == 3
    assert [h.id for h in state.highlights] == [2]

    engine.resized()
    engine.controller.resize_debouncer.flush()
    assert [h.id for h in engine.state().highlights] == [2]


def test_menu_api(engine):
    select(engine, *BRAVE)
    engine.annotate(tag="note")
    engine.pointer_up(160.0, 58.0)
    engine.controller.pointer_debouncer.flush()

    assert engine.annotation().quote == "brave"
    assert engine.selection_bounds().ready

    engine.menu("comments")
    engine.comment(0, "bold")
    assert engine.annotations()[0].comment == "bold"

    engine.pointer_up(160.0, 58.0)
    engine.controller.pointer_debouncer.flush()
    assert engine.key_pressed(Qt.Key_Delete)
    assert engine.annotations() == []
    assert engine.tag() == ""


def test_clear_resets_interaction(engine):
    select(engine, *BRAVE)
    engine.clear()
    assert engine.state().selection is None
    assert engine.state().ui.menu is None


def test_state_changed_is_forwarded(qtbot, engine):
    with qtbot.waitSignal(engine.state_changed, timeout=1000):
        engine.menu("tags")


def test_reads_stored_annotations_on_start(qtbot, environment, anchor_service, root, tmp_path):
    adapter = JsonFilePersistence("doc://example", directory=str(tmp_path))
    anchor = anchor_service.serialize(TextRange(*BRAVE), root)
    stored = [{"uid": "u1", "quote": "brave", "anchor": anchor, "tag": "note"}]
    adapter.create(None, stored, stored[0])

    engine = Annot8Engine(environment, adapter=adapter)
    engine.start()
    qtbot.waitUntil(lambda: len(engine.annotations()) == 1, timeout=5000)

    state = engine.state()
    assert state.annotations[0].uid == "u1"
    assert len(state.highlights) == 1
    engine.stop()


def test_changes_reach_the_adapter(qtbot, environment, tmp_path):
    adapter = JsonFilePersistence("doc://example", directory=str(tmp_path))
    engine = Annot8Engine(environment, adapter=adapter)
    engine.start()
    qtbot.waitUntil(lambda: engine.persistence.pending_count == 0, timeout=5000)

    select(engine, *BRAVE)
    with qtbot.waitSignal(engine.persistence.operation_finished, timeout=5000):
        engine.annotate(tag="note")
    engine.stop()

    assert [a["tag"] for a in adapter.read(None)] == ["note"]


def test_start_and_stop_are_idempotent(qapp, environment):
    engine = Annot8Engine(environment)
    engine.stop()
    engine.start()
    controller = engine.controller
    engine.start()
    assert engine.controller is controller
    engine.stop()
    engine.stop()


def test_restart_replaces_the_pipeline(qtbot, environment):
    engine = Annot8Engine(environment)
    engine.start()
    old_controller = engine.controller
    old_geometry = engine.geometry
    engine.stop()

    assert engine.controller is None
    qtbot.waitUntil(lambda: sip.isdeleted(old_controller) and sip.isdeleted(old_geometry))

    engine.start()
    states = []
    engine.state_changed.connect(states.append)
    engine.clear()

    assert len(states) == 1
    controllers = [c for c in engine.children() if isinstance(c, type(engine.controller))]
    assert controllers == [engine.controller]
    engine.stop()


def test_api_is_a_noop_before_start(qapp, environment):
    engine = Annot8Engine(environment)
    assert engine.annotate(tag="note") is None
    assert engine.key_pressed(Qt.Key_Escape) is False
    assert engine.tag() == ""
    assert engine.annotations() == []
