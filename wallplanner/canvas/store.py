from __future__ import annotations

import itertools
import logging
from typing import Callable, Iterator, Optional

from .object import Asset, PlacedItem, ImageItem, BlockItem

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]


def counter_ids() -> IdFactory:
    """Return an id factory producing '<kind>-1', '<kind>-2', ... per kind."""
    counters: dict[str, itertools.count] = {}

    def _next(kind: str) -> str:
        c = counters.setdefault(kind, itertools.count(1))
        return f"{kind}-{next(c)}"

    return _next


class LayoutStore:
    """Ordered collection of placed items plus the registry of source assets.

    Item order is the stacking order and the order used by the wall guide
    packers. Ids handed out by the id factory are never reused.
    """

    def __init__(self, id_factory: Optional[IdFactory] = None) -> None:
        self.assets: list[Asset] = []
        self.items: list[PlacedItem] = []
        self._id_factory = id_factory or counter_ids()
        self._asset_ids = itertools.count()

    def __iter__(self) -> Iterator[PlacedItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, item_id: str) -> bool:
        return self.find(item_id) is not None

    # --- Assets ---
    def new_asset_id(self) -> int:
        return next(self._asset_ids)

    def add_asset(self, asset: Asset) -> Asset:
        self.assets.append(asset)
        return asset

    def sort_assets(self) -> None:
        self.assets.sort(key=lambda a: a.name.casefold())

    def asset(self, asset_id: int) -> Optional[Asset]:
        for a in self.assets:
            if a.id == asset_id:
                return a
        return None

    def asset_by_name(self, name: str) -> Optional[Asset]:
        for a in self.assets:
            if a.name == name:
                return a
        return None

    def unplaced_assets(self) -> list[Asset]:
        placed = {it.source_id for it in self.items if isinstance(it, ImageItem)}
        return [a for a in self.assets if a.id not in placed]

    def remove_uploaded_assets(self) -> list[PlacedItem]:
        """Drop user uploads and every image placed from them.

        Returns the removed items.
        """
        uploaded = {a.id for a in self.assets if not a.from_library}
        removed = [it for it in self.items if isinstance(it, ImageItem) and it.source_id in uploaded]
        self.items = [it for it in self.items if it not in removed]
        self.assets = [a for a in self.assets if a.from_library]
        logger.info(f"Removed {len(uploaded)} uploaded assets and {len(removed)} placed images")
        return removed

    # --- Items ---
    def new_item_id(self, kind: str) -> str:
        return self._id_factory(kind)

    def create_image(self, asset: Asset, x: float, y: float) -> ImageItem:
        """Create and append an image item at the asset's natural size."""
        item = ImageItem(
            id=self.new_item_id(ImageItem.kind),
            name=asset.name,
            width=float(asset.width),
            height=float(asset.height),
            x=float(x),
            y=float(y),
            source_id=asset.id,
            natural_width=float(asset.width),
            natural_height=float(asset.height),
        )
        self.items.append(item)
        return item

    def create_block(self, name: str, width: float, height: float, x: float, y: float) -> BlockItem:
        item = BlockItem(
            id=self.new_item_id(BlockItem.kind),
            name=name,
            width=float(width),
            height=float(height),
            x=float(x),
            y=float(y),
        )
        self.items.append(item)
        return item

    def add(self, item: PlacedItem) -> PlacedItem:
        self.items.append(item)
        return item

    def find(self, item_id: Optional[str]) -> Optional[PlacedItem]:
        if item_id is None:
            return None
        for it in self.items:
            if it.id == item_id:
                return it
        return None

    def get(self, item_id: str) -> PlacedItem:
        item = self.find(item_id)
        if item is None:
            raise KeyError(item_id)
        return item

    def remove(self, item_id: str) -> bool:
        for i, it in enumerate(self.items):
            if it.id == item_id:
                del self.items[i]
                return True
        return False

    def clear_items(self) -> None:
        self.items = []

    def image_items(self) -> list[ImageItem]:
        return [it for it in self.items if isinstance(it, ImageItem)]

    def extent(self) -> tuple[float, float]:
        """Largest right and bottom edge over all items (real px)."""
        max_right = 0.0
        max_bottom = 0.0
        for it in self.items:
            max_right = max(max_right, it.right)
            max_bottom = max(max_bottom, it.bottom)
        return max_right, max_bottom
