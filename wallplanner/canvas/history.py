from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Optional

from wallplanner.core import MAX_HISTORY, STORAGE_KEY, WALL_PRESETS
from .assets import to_data_url, from_data_url
from .object import Asset, ImageItem, BlockItem, PlacedItem
from .scene import EditorState
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Serializable capture of placed items and view settings.

    Library images are stored by name only and re-resolved on restore;
    uploaded images carry their preview inline as a data URL in `src`.
    """

    items: list[dict] = field(default_factory=list)
    zoom: float = 1.0
    wall_preset: str = "none"
    show_labels: Optional[bool] = None
    show_handles: Optional[bool] = None
    snap_to_standard: Optional[bool] = None

    @classmethod
    def capture(cls, state: EditorState) -> "Snapshot":
        view = state.view
        return cls(
            items=[_serialize_item(state, it) for it in state.store.items],
            zoom=float(view.zoom),
            wall_preset=str(view.wall_preset),
            show_labels=bool(view.show_labels),
            show_handles=bool(view.show_handles),
            snap_to_standard=bool(view.snap_to_standard),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        items = data.get("items")
        return cls(
            items=[dict(it) for it in items if isinstance(it, dict)] if isinstance(items, list) else [],
            zoom=_as_zoom(data.get("zoom")),
            wall_preset=_as_preset(data.get("wall_preset")),
            show_labels=_opt_bool(data.get("show_labels")),
            show_handles=_opt_bool(data.get("show_handles")),
            snap_to_standard=_opt_bool(data.get("snap_to_standard")),
        )

    @classmethod
    def from_json(cls, text: str) -> "Snapshot":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        return cls.from_dict(data)

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, sort_keys=True)


def _as_zoom(value) -> float:
    try:
        z = float(value)
    except (TypeError, ValueError):
        return 1.0
    return z if z > 0.0 else 1.0


def _as_preset(value) -> str:
    return value if isinstance(value, str) and value in WALL_PRESETS else "none"


def _opt_bool(value) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _serialize_item(state: EditorState, it: PlacedItem) -> dict:
    data = {
        "type": it.kind,
        "name": it.name,
        "width": float(it.width),
        "height": float(it.height),
        "max_width": float(it.max_width),
        "max_height": float(it.max_height),
        "x": float(it.x),
        "y": float(it.y),
    }
    if isinstance(it, ImageItem):
        asset = state.store.asset(it.source_id)
        from_library = bool(asset.from_library) if asset else False
        data.update({
            "pre_snap_width": it.pre_snap_width,
            "pre_snap_height": it.pre_snap_height,
            "from_library": from_library,
            "src": to_data_url(asset.data) if asset and not from_library else None,
        })
    return data


def restore_snapshot(state: EditorState, snap: Snapshot) -> list[PlacedItem]:
    """Apply view settings and re-create every item of `snap` in the store.

    The store's items are expected to be cleared by the caller. Images are
    matched against the asset registry by name; unknown names fall back to the
    inline image data, which is re-registered as an uploaded asset. Items
    that cannot be resolved are skipped with a warning.
    """
    view = state.view
    state.transform.set_zoom(snap.zoom or 1.0)
    view.wall_preset = _as_preset(snap.wall_preset)
    if snap.show_labels is not None:
        view.show_labels = snap.show_labels
    if snap.show_handles is not None:
        view.show_handles = snap.show_handles
    if snap.snap_to_standard is not None:
        view.snap_to_standard = snap.snap_to_standard

    store = state.store
    restored: list[PlacedItem] = []
    for saved in snap.items:
        try:
            item = _restore_item(store, saved)
        except (KeyError, TypeError, ValueError):
            logger.exception(f"Skipping malformed saved item {saved.get('name', '?')!r}")
            continue
        if item is not None:
            restored.append(item)
    return restored


def _restore_item(store, saved: dict) -> Optional[PlacedItem]:
    name = str(saved.get("name", ""))
    width = float(saved["width"])
    height = float(saved["height"])
    x = float(saved.get("x", 0.0))
    y = float(saved.get("y", 0.0))
    if width <= 0.0 or height <= 0.0:
        raise ValueError(f"non-positive size {width}x{height}")

    if saved.get("type") == BlockItem.kind:
        return store.create_block(name, width, height, x, y)

    asset = store.asset_by_name(name)
    if asset is None and saved.get("src"):
        try:
            data = from_data_url(str(saved["src"]))
        except ValueError:
            logger.warning(f"Could not decode saved image data for {name!r}")
            data = None
        if data is not None:
            asset = store.add_asset(Asset(
                id=store.new_asset_id(),
                name=name,
                data=data,
                width=int(round(float(saved.get("max_width", width)))),
                height=int(round(float(saved.get("max_height", height)))),
                from_library=False,
            ))
    if asset is None:
        logger.warning(f"Could not restore image: {name}")
        return None

    item = ImageItem(
        id=store.new_item_id(ImageItem.kind),
        name=name,
        width=width,
        height=height,
        x=x,
        y=y,
        source_id=asset.id,
        natural_width=float(saved.get("max_width", asset.width)),
        natural_height=float(saved.get("max_height", asset.height)),
        pre_snap_width=_opt_float(saved.get("pre_snap_width")),
        pre_snap_height=_opt_float(saved.get("pre_snap_height")),
    )
    return store.add(item)


def _opt_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


class HistoryManager:
    """Bounded linear undo history backed by a key-value store.

    `current` is the last committed snapshot (serialized). Each commit pushes
    the previous `current` onto the stack, evicting the oldest entry beyond
    `max_depth`, then persists the new one. Storage failures are logged and
    never raised; the in-memory state stays authoritative.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        key: str = STORAGE_KEY,
        max_depth: int = MAX_HISTORY,
    ) -> None:
        self.storage = storage
        self.key = key
        self.max_depth = max_depth
        self._stack: list[str] = []
        self.current: Optional[str] = None

    def __len__(self) -> int:
        return len(self._stack)

    def can_undo(self) -> bool:
        return bool(self._stack)

    def commit(self, snap: Snapshot) -> bool:
        """Record `snap` as the new current state.

        Returns False when it is identical to the current state, in which
        case nothing is pushed or written.
        """
        text = snap.to_json()
        if text == self.current:
            return False
        if self.current is not None:
            self._stack.append(self.current)
            while len(self._stack) > self.max_depth:
                self._stack.pop(0)
        self.current = text
        self._persist(text)
        return True

    def undo(self) -> Optional[Snapshot]:
        """Pop the previous state and make it current; None when empty."""
        while self._stack:
            text = self._stack.pop()
            try:
                snap = Snapshot.from_json(text)
            except ValueError:
                logger.exception("Discarding unreadable history entry")
                continue
            self.current = text
            self._persist(text)
            return snap
        return None

    def reset(self, text: Optional[str]) -> None:
        """Use `text` as the current state without touching the stack."""
        self.current = text

    def clear(self) -> None:
        self._stack = []

    def load(self) -> Optional[Snapshot]:
        """Read the persisted state and adopt it as current."""
        if self.storage is None:
            return None
        try:
            text = self.storage.get(self.key)
        except Exception:
            logger.exception("Could not load state")
            return None
        if not text:
            return None
        try:
            snap = Snapshot.from_json(text)
        except ValueError:
            logger.exception("Saved state is not a valid snapshot")
            return None
        self.current = text
        return snap

    def forget_persisted(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.remove(self.key)
        except Exception:
            logger.exception("Could not clear saved state")

    def _persist(self, text: str) -> None:
        if self.storage is None:
            return
        try:
            self.storage.set(self.key, text)
        except Exception:
            logger.exception("Could not save state")
