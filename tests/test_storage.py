import json
import pytest

from wallplanner.canvas.storage import JsonFileStore, load_default_layout

# Json file store tests
def test_set_get_remove(tmp_path):
    store = JsonFileStore(tmp_path / "state" / "storage.json")
    assert store.get("k") is None
    store.set("k", "v1")
    store.set("other", "v2")
    assert store.get("k") == "v1"
    store.remove("k")
    assert store.get("k") is None
    assert store.get("other") == "v2"
    store.remove("never-set")

def test_values_survive_new_instance(tmp_path):
    path = tmp_path / "storage.json"
    JsonFileStore(path).set("posterPlacerState", '{"items": []}')
    assert JsonFileStore(path).get("posterPlacerState") == '{"items": []}'
    assert not path.with_suffix(".json.tmp").exists()

def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonFileStore(path).get("k")

def test_non_object_file_raises(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonFileStore(path).set("k", "v")

# Default layout tests
def test_default_layout_missing(tmp_path):
    assert load_default_layout(tmp_path / "default-layout.json") is None

def test_default_layout_invalid(tmp_path):
    path = tmp_path / "default-layout.json"
    path.write_text("not json", encoding="utf-8")
    assert load_default_layout(path) is None
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_default_layout(path) is None

def test_default_layout(tmp_path):
    path = tmp_path / "default-layout.json"
    path.write_text(json.dumps({"zoom": 0.4, "items": []}), encoding="utf-8")
    assert load_default_layout(path) == {"zoom": 0.4, "items": []}
