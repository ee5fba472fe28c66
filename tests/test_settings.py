import json
from dataclasses import asdict
import pytest

from wallplanner.core import state


@pytest.fixture(autouse=True)
def restore_settings():
    saved = asdict(state.settings)
    yield
    for k, v in saved.items():
        setattr(state.settings, k, v)


def clear_env(monkeypatch, *names):
    # Register the variables so values set by dotenv are removed on teardown
    for name in names:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

# Settings file tests
def test_save_and_load_settings(tmp_path):
    path = tmp_path / "_internal" / "settings.json"
    state.settings.library_dir = "/tmp/posters"
    state.save_settings(path)
    state.settings.library_dir = "elsewhere"
    assert state.load_settings(path)
    assert state.settings.library_dir == "/tmp/posters"

def test_load_settings_ignores_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"preview_quality": 50, "colour": "red"}), encoding="utf-8")
    assert state.load_settings(path)
    assert state.settings.preview_quality == 50
    assert not hasattr(state.settings, "colour")

def test_load_settings_missing_or_broken(tmp_path):
    assert not state.load_settings(tmp_path / "nope.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert not state.load_settings(broken)

# Environment override tests
def test_env_overrides(monkeypatch, tmp_path):
    clear_env(monkeypatch, "WALLPLANNER_LIBRARY_DIR", "WALLPLANNER_PREVIEW_MAX_SIZE")
    monkeypatch.setenv("WALLPLANNER_LIBRARY_DIR", "/srv/posters")
    monkeypatch.setenv("WALLPLANNER_PREVIEW_MAX_SIZE", "640")
    changed = state.load_env_overrides(tmp_path / "missing-env")
    assert set(changed) == {"library_dir", "preview_max_size"}
    assert state.settings.library_dir == "/srv/posters"
    assert state.settings.preview_max_size == 640

def test_env_overrides_from_dotenv_file(monkeypatch, tmp_path):
    clear_env(monkeypatch, "WALLPLANNER_WINDOW_SIZE", "WALLPLANNER_PREVIEW_QUALITY")
    env = tmp_path / "env"
    env.write_text("WALLPLANNER_WINDOW_SIZE=1024x768\nWALLPLANNER_PREVIEW_QUALITY=high\n", encoding="utf-8")
    default_quality = state.settings.preview_quality
    changed = state.load_env_overrides(env)
    assert changed == ["window_size"]
    assert state.settings.window_size == "1024x768"
    assert state.settings.preview_quality == default_quality
