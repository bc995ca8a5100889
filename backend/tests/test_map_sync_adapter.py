from __future__ import annotations

from conftest import FakeMapSurface, block_feature
from layers.types import MapFeature
from mapsync.adapter import BlockLayerConfig, MapSyncAdapter
from selection.store import SelectionStore


def _attached(surface: FakeMapSurface, store: SelectionStore | None = None) -> MapSyncAdapter:
    adapter = MapSyncAdapter(store or SelectionStore())
    adapter.attach(surface)
    return adapter


def test_click_toggles_only_the_clicked_block(surface):
    store = SelectionStore()
    store.add_many(["A", "B"])
    _attached(surface, store)
    surface.state_calls.clear()

    surface.hits = [block_feature("C")]
    surface.click()

    assert store.get_selected() == {"A", "B", "C"}
    assert surface.state_calls == [("blocks", None, "C", {"selected": True})]


def test_click_acts_on_topmost_hit_only(surface):
    store = SelectionStore()
    _attached(surface, store)

    surface.hits = [block_feature("top"), block_feature("below"), block_feature("bottom")]
    surface.click()

    assert store.get_selected() == {"top"}


def test_second_click_deselects(surface):
    store = SelectionStore()
    _attached(surface, store)
    surface.hits = [block_feature(7)]

    surface.click()
    surface.click()

    assert store.get_selected() == set()
    assert surface.highlighted() == {7: False}


def test_click_falls_back_to_block_id_then_geoid(surface):
    store = SelectionStore()
    _attached(surface, store)

    surface.hits = [block_feature(None, block_id="blk-1", GEOID="360610001001")]
    surface.click()
    surface.hits = [block_feature(None, GEOID="360610001002")]
    surface.click()

    assert store.get_selected() == {"blk-1", "360610001002"}


def test_click_without_any_id_is_ignored(surface, caplog):
    store = SelectionStore()
    _attached(surface, store)
    surface.state_calls.clear()

    surface.hits = [block_feature(None, name="nameless")]
    surface.click()

    assert store.get_selected() == set()
    assert surface.state_calls == []
    assert "no usable id" in caplog.text


def test_click_with_no_hits_changes_nothing(surface):
    store = SelectionStore()
    _attached(surface, store)

    surface.hits = []
    surface.click()

    assert store.count == 0


def test_numeric_ids_are_pushed_as_numbers(surface):
    store = SelectionStore()
    _attached(surface, store)

    surface.hits = [MapFeature(id=42.0, properties={})]
    surface.click()

    assert store.get_selected() == {"42"}
    assert surface.state_calls[-1][2] == 42


def test_store_changes_push_only_the_diff(surface):
    store = SelectionStore()
    _attached(surface, store)

    store.add_many(["A", "B"])
    surface.state_calls.clear()
    store.add_many(["B", "C"])

    assert surface.state_calls == [("blocks", None, "C", {"selected": True})]

    surface.state_calls.clear()
    store.invert(["A", "B", "C", "D"])

    pushed = {(fid, state["selected"]) for _s, _l, fid, state in surface.state_calls}
    assert pushed == {("A", False), ("B", False), ("C", False), ("D", True)}


def test_reload_replays_entire_selection_idempotently(surface):
    store = SelectionStore()
    _attached(surface, store)
    store.select_all(["A", "B"])

    for _ in range(3):
        surface.state_calls.clear()
        surface.reload()
        assert sorted(fid for _s, _l, fid, _st in surface.state_calls) == ["A", "B"]
        assert all(st == {"selected": True} for _s, _l, _f, st in surface.state_calls)


def test_reload_of_other_source_is_ignored(surface):
    store = SelectionStore()
    _attached(surface, store)
    store.add("A")
    surface.state_calls.clear()

    surface.reload("streets")

    assert surface.state_calls == []


def test_attach_paints_existing_selection(surface):
    store = SelectionStore()
    store.add_many(["A", "B"])

    _attached(surface, store)

    assert surface.highlighted() == {"A": True, "B": True}


def test_bulk_operations_use_visible_blocks(surface):
    store = SelectionStore()
    adapter = _attached(surface, store)
    surface.features = [
        block_feature("A"),
        block_feature("B"),
        block_feature("B"),  # same polygon reported by two tiles
        block_feature("C"),
    ]

    adapter.select_all_visible()
    assert store.get_selected() == {"A", "B", "C"}

    store.set_selected("B", False)
    store.add("Z")
    adapter.invert_visible()
    assert store.get_selected() == {"B"}

    adapter.clear_all()
    assert store.get_selected() == set()
    assert surface.highlighted() == {"A": False, "B": False, "C": False, "Z": False}


def test_detached_adapter_is_a_no_op(surface):
    store = SelectionStore()
    store.add("A")
    adapter = MapSyncAdapter(store)

    adapter.select_all_visible()
    adapter.invert_visible()
    adapter.clear_all()
    adapter.replay()
    adapter.handle_click((1.0, 1.0))

    assert store.get_selected() == {"A"}
    assert adapter.candidate_blocks() == []


def test_detach_stops_listening(surface):
    store = SelectionStore()
    adapter = _attached(surface, store)
    adapter.detach()
    surface.state_calls.clear()

    store.add("A")
    surface.hits = [block_feature("B")]
    surface.click()
    surface.reload()

    assert surface.state_calls == []
    assert store.get_selected() == {"A"}
    assert not adapter.attached


def test_query_failures_leave_state_untouched(surface):
    store = SelectionStore()
    store.add("A")
    adapter = _attached(surface, store)
    surface.fail_queries = True

    surface.hits = [block_feature("B")]
    surface.click()
    adapter.select_all_visible()
    adapter.invert_visible()

    assert store.get_selected() == {"A"}


def test_candidate_blocks_follow_configured_properties(surface):
    store = SelectionStore()
    adapter = MapSyncAdapter(
        store,
        BlockLayerConfig(source="nyc-blocks", source_layer="blocks2020", block_id_property="bid"),
    )
    adapter.attach(surface)
    surface.features = [block_feature(None, bid="b-1"), block_feature(None, other="x")]

    blocks = adapter.candidate_blocks()

    assert [b.id for b in blocks] == ["b-1"]
    store.add("b-1")
    assert surface.state_calls[-1] == ("nyc-blocks", "blocks2020", "b-1", {"selected": True})


def test_hover_sets_pointer_cursor(surface):
    _attached(surface)

    surface.hover_handlers[0]()
    assert surface.cursor == "pointer"
    surface.hover_handlers[1]()
    assert surface.cursor == ""


def test_highlight_uses_the_id_the_surface_reported(surface):
    store = SelectionStore()
    _attached(surface, store)

    surface.hits = [block_feature(None, block_id="007")]
    surface.click()
    surface.state_calls.clear()
    surface.reload()

    assert store.get_selected() == {"007"}
    assert surface.state_calls == [("blocks", None, "007", {"selected": True})]


def test_unseen_unicode_digit_ids_are_still_highlighted(surface):
    store = SelectionStore()
    _attached(surface, store)

    store.add("²")

    assert surface.state_calls == [("blocks", None, "²", {"selected": True})]


def test_visible_block_ids_are_unique_in_surface_order(surface):
    adapter = _attached(surface)
    surface.features = [
        block_feature("B"),
        block_feature("A"),
        block_feature("B", 5.0, 0.0),
        block_feature(None, name="nameless"),
    ]

    assert adapter.visible_block_ids() == ["B", "A"]

    surface.fail_queries = True
    assert adapter.visible_block_ids() == []
