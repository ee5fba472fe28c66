import io
import sys
import itertools
from pathlib import Path
from unittest.mock import Mock, patch
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image


class MemoryStorage:
    """In-memory key-value store; set `fail` to simulate an unavailable backend."""

    def __init__(self):
        self.data = {}
        self.fail = False
        self.writes = 0

    def get(self, key):
        if self.fail:
            raise OSError("storage unavailable")
        return self.data.get(key)

    def set(self, key, value):
        if self.fail:
            raise OSError("storage unavailable")
        self.data[key] = value
        self.writes += 1

    def remove(self, key):
        if self.fail:
            raise OSError("storage unavailable")
        self.data.pop(key, None)


def _image_bytes(width, height, color=(200, 30, 30), fmt="PNG"):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(scope="session", autouse=True)
def patch_filedialog():
    with patch('tkinter.filedialog.askopenfilenames', return_value=()):
        yield


@pytest.fixture
def image_bytes():
    return _image_bytes


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def state():
    from wallplanner.canvas.scene import EditorState
    return EditorState.create()


@pytest.fixture
def editor(storage):
    from wallplanner.canvas.editor import LayoutEditor
    return LayoutEditor(storage=storage)


@pytest.fixture
def add_asset():
    from wallplanner.canvas.object import Asset

    def _add(store, name, width, height, from_library=True, data=b"preview"):
        return store.add_asset(Asset(
            id=store.new_asset_id(),
            name=name,
            data=data,
            width=width,
            height=height,
            from_library=from_library,
        ))
    return _add


@pytest.fixture
def mock_canvas():
    ids = itertools.count(1)
    canvas = Mock()
    canvas.create_rectangle = Mock(side_effect=lambda *a, **k: next(ids))
    canvas.create_text = Mock(side_effect=lambda *a, **k: next(ids))
    canvas.create_image = Mock(side_effect=lambda *a, **k: next(ids))
    canvas.find_withtag = Mock(return_value=())
    canvas.gettags = Mock(return_value=())
    canvas.canvasx = Mock(return_value=0.0)
    canvas.canvasy = Mock(return_value=0.0)
    return canvas
