from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from wallplanner.core import DPI, DEFAULT_DROP_POS, WALL_PRESETS
from . import layout
from .assets import AssetLoader
from .history import HistoryManager, Snapshot, restore_snapshot
from .interaction import InteractionController
from .object import Asset, BlockItem, ImageItem, PlacedItem
from .scene import EditorState, ASSETS, ITEMS, RESET, SELECTION, VIEW
from .sizes import snap_items, unsnap_items
from .storage import KeyValueStore, load_default_layout
from .store import IdFactory
from .transform import format_inches

logger = logging.getLogger(__name__)


class LayoutEditor:
    """Application controller that owns the editing state.

    Every explicit action mutates the state, notifies subscribers and commits
    a snapshot to the history manager. Pointer gestures are delegated to
    `self.interaction`, which calls back into `commit` on release.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        id_factory: Optional[IdFactory] = None,
        history: Optional[HistoryManager] = None,
        loader: Optional[AssetLoader] = None,
    ) -> None:
        self.state = EditorState.create(id_factory)
        self.history = history or HistoryManager(storage)
        self.loader = loader or AssetLoader(self.state.store)
        self.interaction = InteractionController(self.state, on_commit=self.commit)

    # --- Convenience accessors ---
    @property
    def store(self):
        return self.state.store

    @property
    def selection(self):
        return self.state.selection

    @property
    def view(self):
        return self.state.view

    @property
    def transform(self):
        return self.state.transform

    def subscribe(self, listener):
        return self.state.subscribe(listener)

    # --- Persistence ---
    def commit(self) -> bool:
        """Snapshot the current state into history and storage."""
        return self.history.commit(Snapshot.capture(self.state))

    def startup(self, library_dir: Optional[str | Path] = None, default_layout: Optional[str | Path] = None) -> None:
        """Load persisted state, preload the library and restore the layout.

        The persisted snapshot wins; the default layout is consulted only
        when storage is empty and then becomes the undo baseline.
        """
        saved = self.history.load()
        if library_dir is not None:
            self.loader.preload(library_dir)
            self.state.notify(ASSETS)
        if saved is not None:
            self._restore(saved)
            return
        if default_layout is None:
            return
        data = load_default_layout(default_layout)
        if data is None:
            return
        try:
            snap = Snapshot.from_dict(data)
        except (TypeError, ValueError):
            logger.exception("Default layout is not a valid snapshot")
            return
        self.history.reset(snap.to_json())
        self._restore(snap)

    def undo(self) -> bool:
        snap = self.history.undo()
        if snap is None:
            return False
        self._restore(snap)
        logger.debug(f"Undo, {len(self.history)} steps left")
        return True

    def _restore(self, snap: Snapshot) -> None:
        self.store.clear_items()
        self.selection.deselect_all()
        restore_snapshot(self.state, snap)
        self.state.notify(RESET)

    # --- Items ---
    def add_asset_item(self, asset_id: int) -> Optional[ImageItem]:
        """Place a copy of an asset at its natural size."""
        asset = self.store.asset(asset_id)
        if asset is None:
            logger.warning(f"Unknown asset {asset_id}")
            return None
        item = self.store.create_image(asset, *DEFAULT_DROP_POS)
        self.state.notify(ITEMS, (item.id,))
        self.commit()
        return item

    def add_block(self, width_in: float, height_in: float) -> BlockItem:
        name = f'{format_inches(width_in)}" × {format_inches(height_in)}"'
        item = self.store.create_block(name, width_in * DPI, height_in * DPI, *DEFAULT_DROP_POS)
        self.state.notify(ITEMS, (item.id,))
        self.commit()
        return item

    def import_uploads(self, paths: Iterable[str | Path]) -> list[Asset]:
        added = self.loader.import_files(paths)
        if added:
            self.store.sort_assets()
            self.state.notify(ASSETS)
        return added

    def delete_selection(self) -> list[str]:
        """Remove the selected items (or the primary one). No-op when empty."""
        ids = self.selection.targets()
        if not ids:
            return []
        removed = [i for i in ids if self.store.remove(i)]
        self.selection.deselect_all()
        self.state.notify(ITEMS, removed)
        self.commit()
        return removed

    def select(self, item_id: str, additive: bool = False) -> None:
        self.store.get(item_id)
        self.selection.select(item_id, additive)
        self.state.notify(SELECTION, self.selection.selected)

    def deselect_all(self) -> None:
        self.selection.deselect_all()
        self.state.notify(SELECTION)

    def resize_to_max(self, item_id: str) -> bool:
        item = self.store.find(item_id)
        if item is None:
            return False
        item.width = item.max_width
        item.height = item.max_height
        self.state.notify(ITEMS, (item.id,))
        self.commit()
        return True

    def clear_canvas(self) -> None:
        """Remove every item, reset zoom and forget the saved state."""
        self.store.clear_items()
        self.selection.deselect_all()
        self.transform.set_zoom(1.0)
        self.history.forget_persisted()
        self.state.notify(RESET)

    def remove_uploaded_assets(self) -> list[PlacedItem]:
        removed = self.store.remove_uploaded_assets()
        self.selection.prune(it.id for it in self.store)
        self.state.notify(ASSETS)
        self.state.notify(RESET)
        self.commit()
        return removed

    # --- View toggles ---
    def set_zoom(self, zoom: float) -> float:
        applied = self.transform.set_zoom(zoom)
        self.state.notify(VIEW)
        self.commit()
        return applied

    def zoom_step(self, direction: int, factor: float = 1.25) -> float:
        """Zoom in (direction > 0) or out by `factor`."""
        z = self.transform.zoom
        return self.set_zoom(z * factor if direction > 0 else z / factor)

    def set_show_labels(self, show: bool) -> None:
        self.view.show_labels = bool(show)
        self.state.notify(VIEW)
        self.commit()

    def set_show_handles(self, show: bool) -> None:
        self.view.show_handles = bool(show)
        self.state.notify(VIEW)
        self.commit()

    def set_snap_to_standard(self, enabled: bool) -> list[ImageItem]:
        """Snap images to standard print sizes, or undo the snap.

        Works on the selected images when there is a selection, otherwise on
        every placed image. Blocks are never touched.
        """
        self.view.snap_to_standard = bool(enabled)
        targets = self._snap_targets()
        changed = snap_items(targets) if enabled else unsnap_items(targets)
        self.state.notify(ITEMS, [it.id for it in changed])
        self.commit()
        return changed

    def _snap_targets(self) -> list[ImageItem]:
        images = self.store.image_items()
        if self.selection.selected:
            chosen = set(self.selection.selected)
            return [it for it in images if it.id in chosen]
        return images

    def set_wall_preset(self, name: str, move_items: bool = True) -> None:
        if name not in WALL_PRESETS:
            raise ValueError(f"Unknown wall preset {name!r}")
        self.view.wall_preset = name
        if move_items:
            layout.pack_into_wall_guide(self.state)
        self.state.notify(VIEW)
        self.state.notify(ITEMS, [it.id for it in self.store])
        self.commit()

    # --- Auto layout ---
    def place_all(self, viewport_w: float, viewport_h: float) -> list[ImageItem]:
        created = layout.place_all(self.state, viewport_w, viewport_h)
        if created:
            self.state.notify(VIEW)
            self.state.notify(ITEMS, [it.id for it in created])
            self.commit()
        return created

    def move_out_of_guide(self) -> bool:
        if not layout.pack_below_wall_guide(self.state):
            return False
        self.state.notify(ITEMS, [it.id for it in self.store])
        self.commit()
        return True

    def fit_to_view(self, viewport_w: float, viewport_h: float) -> Optional[float]:
        zoom = layout.fit_to_view(self.state, viewport_w, viewport_h)
        if zoom is None:
            return None
        self.state.notify(VIEW)
        self.commit()
        return zoom

    # --- Reporting ---
    def size_summary(self) -> str:
        """Overall layout size in inches and feet."""
        if not self.store.items:
            return "Current: — in × — in\n(— ft × — ft)"
        max_right, max_bottom = self.store.extent()
        w_in = max_right / DPI
        h_in = max_bottom / DPI
        return f"Current: {w_in:.1f} in × {h_in:.1f} in\n({w_in / 12:.1f} ft × {h_in / 12:.1f} ft)"
