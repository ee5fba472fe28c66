import json
import logging

from wallplanner.core import MAX_HISTORY, STORAGE_KEY
from wallplanner.canvas.assets import to_data_url
from wallplanner.canvas.history import HistoryManager, Snapshot, restore_snapshot


def snap(n):
    return Snapshot(items=[{"type": "block", "name": f"b{n}", "width": 100.0, "height": 100.0, "x": float(n), "y": 0.0}])

# Commit / undo tests
def test_undo_returns_previous_commit(storage):
    history = HistoryManager(storage)
    history.commit(snap(1))
    history.commit(snap(2))
    restored = history.undo()
    assert restored.items[0]["name"] == "b1"
    assert storage.data[STORAGE_KEY] == restored.to_json()
    assert history.undo() is None

def test_first_commit_has_nothing_to_undo(storage):
    history = HistoryManager(storage)
    history.commit(snap(1))
    assert not history.can_undo()
    assert history.undo() is None

def test_depth_is_bounded(storage):
    history = HistoryManager(storage)
    for n in range(MAX_HISTORY + 2):
        history.commit(snap(n))
        assert len(history) <= MAX_HISTORY
    assert len(history) == MAX_HISTORY
    last = None
    for _ in range(MAX_HISTORY):
        last = history.undo()
    # The state after the very first commit was evicted
    assert last.items[0]["name"] == "b1"
    assert history.undo() is None

def test_small_depth_evicts_oldest():
    history = HistoryManager(max_depth=2)
    for n in range(5):
        history.commit(snap(n))
    assert [history.undo().items[0]["name"] for _ in range(2)] == ["b3", "b2"]
    assert history.undo() is None

def test_identical_commit_is_skipped(storage):
    history = HistoryManager(storage)
    assert history.commit(snap(1))
    assert not history.commit(snap(1))
    assert len(history) == 0
    assert storage.writes == 1

def test_clear_keeps_current():
    history = HistoryManager()
    history.commit(snap(1))
    history.commit(snap(2))
    history.clear()
    assert not history.can_undo()
    assert history.current == snap(2).to_json()

# Storage failure tests
def test_storage_failure_is_logged_not_raised(storage, caplog):
    storage.fail = True
    history = HistoryManager(storage)
    with caplog.at_level(logging.ERROR):
        assert history.commit(snap(1))
        assert history.commit(snap(2))
        assert history.undo() is not None
    assert "Could not save state" in caplog.text
    assert history.current == snap(1).to_json()

def test_load_failure_is_logged(storage, caplog):
    storage.fail = True
    with caplog.at_level(logging.ERROR):
        assert HistoryManager(storage).load() is None
    assert "Could not load state" in caplog.text

def test_load_adopts_persisted_state(storage):
    storage.data[STORAGE_KEY] = snap(7).to_json()
    history = HistoryManager(storage)
    loaded = history.load()
    assert loaded.items[0]["name"] == "b7"
    history.commit(snap(8))
    assert history.undo().items[0]["name"] == "b7"

def test_load_rejects_garbage(storage, caplog):
    storage.data[STORAGE_KEY] = "{not json"
    with caplog.at_level(logging.ERROR):
        assert HistoryManager(storage).load() is None
    storage.data[STORAGE_KEY] = "[1, 2]"
    assert HistoryManager(storage).load() is None

def test_forget_persisted(storage):
    history = HistoryManager(storage)
    history.commit(snap(1))
    history.forget_persisted()
    assert STORAGE_KEY not in storage.data

# Snapshot tests
def test_snapshot_from_dict_defaults():
    s = Snapshot.from_dict({"items": "nope", "zoom": 0})
    assert s.items == []
    assert s.zoom == 1.0
    assert s.wall_preset == "none"
    assert s.show_labels is None

def test_snapshot_from_dict_unknown_wall_preset():
    assert Snapshot.from_dict({"wall_preset": "garage"}).wall_preset == "none"
    assert Snapshot.from_dict({"wall_preset": ["dorm"]}).wall_preset == "none"
    assert Snapshot.from_dict({"wall_preset": "dorm"}).wall_preset == "dorm"

def test_snapshot_from_dict_drops_non_object_items():
    s = Snapshot.from_dict({"items": [{"name": "a"}, 3, "x"], "zoom": "0.5"})
    assert s.items == [{"name": "a"}]
    assert s.zoom == 0.5

def test_snapshot_json_is_stable():
    a = Snapshot(items=[{"x": 1.0, "name": "a"}], zoom=0.5)
    b = Snapshot.from_json(a.to_json())
    assert b == a
    assert json.loads(a.to_json())["zoom"] == 0.5

def test_capture_marks_library_and_uploads(state, add_asset):
    lib = add_asset(state.store, "lib.jpg", 300, 400, from_library=True)
    up = add_asset(state.store, "up.jpg", 300, 400, from_library=False, data=b"\xff\xd8raw")
    state.store.create_image(lib, 0, 0)
    state.store.create_image(up, 10, 0)
    state.store.create_block("b", 100, 100, 0, 500)
    items = Snapshot.capture(state).items
    assert [it["type"] for it in items] == ["image", "image", "block"]
    assert items[0]["from_library"] is True and items[0]["src"] is None
    assert items[1]["from_library"] is False
    assert items[1]["src"] == to_data_url(b"\xff\xd8raw")
    assert items[0]["max_width"] == 300
    assert "src" not in items[2]

# Restore tests
def test_restore_resolves_by_name(state, add_asset):
    lib = add_asset(state.store, "lib.jpg", 300, 400)
    s = Snapshot(items=[{
        "type": "image", "name": "lib.jpg", "width": 150.0, "height": 200.0,
        "max_width": 300.0, "max_height": 400.0, "x": 5.0, "y": 6.0,
        "pre_snap_width": None, "pre_snap_height": None, "from_library": True, "src": None,
    }], zoom=0.25, wall_preset="dorm", show_labels=False)
    restored = restore_snapshot(state, s)
    assert len(restored) == 1
    item = restored[0]
    assert item.source_id == lib.id
    assert (item.width, item.height, item.x, item.y) == (150, 200, 5, 6)
    assert state.view.zoom == 0.25
    assert state.view.wall_preset == "dorm"
    assert state.view.show_labels is False

def test_restore_skips_missing_reference(state, caplog):
    s = Snapshot(items=[
        {"type": "image", "name": "gone.jpg", "width": 100.0, "height": 100.0, "from_library": True, "src": None},
        {"type": "block", "name": "b", "width": 100.0, "height": 100.0, "x": 0.0, "y": 0.0},
    ])
    with caplog.at_level(logging.WARNING):
        restored = restore_snapshot(state, s)
    assert [it.name for it in restored] == ["b"]
    assert "Could not restore image: gone.jpg" in caplog.text

def test_restore_skips_malformed_items(state, caplog):
    s = Snapshot(items=[
        {"type": "block", "name": "no-size"},
        {"type": "block", "name": "zero", "width": 0, "height": 10},
        {"type": "block", "name": "ok", "width": 10, "height": 10},
    ])
    with caplog.at_level(logging.ERROR):
        restored = restore_snapshot(state, s)
    assert [it.name for it in restored] == ["ok"]

def test_restore_rebuilds_upload_from_inline_data(state):
    s = Snapshot(items=[{
        "type": "image", "name": "up.jpg", "width": 100.0, "height": 80.0,
        "max_width": 1000.0, "max_height": 800.0, "from_library": False,
        "src": to_data_url(b"jpegbytes"),
    }])
    restored = restore_snapshot(state, s)
    asset = state.store.asset_by_name("up.jpg")
    assert asset.data == b"jpegbytes"
    assert not asset.from_library
    assert (asset.width, asset.height) == (1000, 800)
    assert restored[0].source_id == asset.id
    assert restored[0].max_width == 1000

def test_restore_unknown_wall_preset_falls_back_to_none(state):
    state.view.wall_preset = "dorm"
    restore_snapshot(state, Snapshot(wall_preset="garage"))
    assert state.view.wall_preset == "none"
    assert state.view.wall_guide() is None

def test_restore_clamps_persisted_zoom(state):
    restore_snapshot(state, Snapshot(zoom=1.25))
    assert state.view.zoom == 1.0
