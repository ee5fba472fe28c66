from .object import Asset, PlacedItem, ImageItem, BlockItem
from .transform import Rect, ViewState, CoordinateTransform
from .store import LayoutStore, counter_ids
from .selection import SelectionModel
from .scene import EditorState, Change
from .interaction import InteractionController, PointerEvent, Handle, Gesture
from .history import HistoryManager, Snapshot
from .storage import JsonFileStore
from .assets import AssetLoader
from .editor import LayoutEditor
