from __future__ import annotations

import math
import logging
from typing import Optional, Sequence

from wallplanner.core import ITEM_PADDING
from .object import ImageItem
from .scene import EditorState

logger = logging.getLogger(__name__)

# Bulk placement, visual px
PLACE_START = (30.0, 30.0)
PLACE_MARGIN = (60.0, 100.0)
PLACE_FILL_RATIO = 0.7
# Fit to view, visual px
FIT_MARGIN = (100.0, 150.0)


def shelf_pack(
    sizes: Sequence[tuple[float, float]],
    start_x: float,
    start_y: float,
    max_x: float,
    padding: float = ITEM_PADDING,
) -> list[tuple[float, float]]:
    """Row-by-row greedy placement.

    Each (w, h) is placed at the cursor; a new row starts when the item would
    cross `max_x`, unless the cursor is still at the row start (an item wider
    than the row gets a row to itself). Returns top-left positions in input
    order.
    """
    x, y = start_x, start_y
    row_h = 0.0
    out: list[tuple[float, float]] = []
    for w, h in sizes:
        if x + w > max_x and x != start_x:
            x = start_x
            y += row_h + padding
            row_h = 0.0
        out.append((x, y))
        x += w + padding
        row_h = max(row_h, h)
    return out


def place_all(state: EditorState, viewport_w: float, viewport_h: float) -> list[ImageItem]:
    """Place every asset that is not on the canvas yet.

    Picks one zoom so the summed item area fills ~70% of the viewport (never
    zooming in), then shelf-packs the new items smallest first in real space.
    Returns the created items.
    """
    store = state.store
    todo = sorted(store.unplaced_assets(), key=lambda a: a.area)
    if not todo:
        return []
    total_area = float(sum(a.area for a in todo))
    avail_w = viewport_w - PLACE_MARGIN[0]
    avail_h = viewport_h - PLACE_MARGIN[1]
    if total_area <= 0.0 or avail_w <= 0.0 or avail_h <= 0.0:
        logger.warning("Cannot place images: empty viewport or zero-sized assets")
        return []

    scale = min(math.sqrt((avail_w * avail_h) / total_area) * PLACE_FILL_RATIO, 1.0)
    zoom = state.transform.set_zoom(scale)

    start_x = PLACE_START[0] / zoom
    start_y = PLACE_START[1] / zoom
    positions = shelf_pack(
        [(float(a.width), float(a.height)) for a in todo],
        start_x,
        start_y,
        avail_w / zoom,
        padding=ITEM_PADDING / zoom,
    )
    created = [store.create_image(a, x, y) for a, (x, y) in zip(todo, positions)]
    logger.info(f"Placed {len(created)} images at zoom {zoom:.3f}")
    return created


def pack_into_wall_guide(state: EditorState) -> bool:
    """Shelf-pack all items inside the wall guide, keeping store order."""
    guide = state.view.wall_guide()
    if guide is None or not state.store.items:
        return False
    pad = ITEM_PADDING
    _apply_positions(
        state,
        shelf_pack(_sizes(state), guide.left + pad, guide.top + pad, guide.right - pad, pad),
    )
    return True


def pack_below_wall_guide(state: EditorState) -> bool:
    """Shelf-pack all items in rows starting just below the wall guide."""
    guide = state.view.wall_guide()
    if guide is None or not state.store.items:
        return False
    pad = ITEM_PADDING
    _apply_positions(
        state,
        shelf_pack(_sizes(state), guide.left, guide.bottom + pad, guide.right, pad),
    )
    return True


def fit_to_view(state: EditorState, viewport_w: float, viewport_h: float) -> Optional[float]:
    """Zoom out so every item (and the wall guide) fits the viewport.

    Never zooms past 100%. Returns the new zoom, or None when there is
    nothing to fit.
    """
    max_right, max_bottom = state.store.extent()
    guide = state.view.wall_guide()
    if guide is not None:
        max_right = max(max_right, guide.right)
        max_bottom = max(max_bottom, guide.bottom)
    if max_right <= 0.0 or max_bottom <= 0.0:
        return None
    avail_w = viewport_w - FIT_MARGIN[0]
    avail_h = viewport_h - FIT_MARGIN[1]
    zoom = min(avail_w / max_right, avail_h / max_bottom, 1.0)
    return state.transform.set_zoom(zoom)


def _sizes(state: EditorState) -> list[tuple[float, float]]:
    return [(it.width, it.height) for it in state.store.items]


def _apply_positions(state: EditorState, positions: list[tuple[float, float]]) -> None:
    for item, (x, y) in zip(state.store.items, positions):
        item.x = x
        item.y = y
