from __future__ import annotations

import logging
from typing import Iterable, NamedTuple

from wallplanner.core import DPI
from .object import ImageItem

logger = logging.getLogger(__name__)


class StandardSize(NamedTuple):
    w: float  # inches, short side
    h: float  # inches, long side
    name: str


class SizeMatch(NamedTuple):
    width: float   # real px, oriented like the input
    height: float
    name: str


# Common photo / poster print sizes, ascending by area
STANDARD_SIZES: tuple[StandardSize, ...] = (
    StandardSize(4, 6, "4×6"),
    StandardSize(5, 7, "5×7"),
    StandardSize(8, 10, "8×10"),
    StandardSize(8.5, 11, "8.5×11"),
    StandardSize(11, 14, "11×14"),
    StandardSize(12, 18, "12×18"),
    StandardSize(16, 20, "16×20"),
    StandardSize(18, 24, "18×24"),
    StandardSize(20, 30, "20×30"),
    StandardSize(24, 36, "24×36"),
)


def find_best_standard_size(width_px: float, height_px: float) -> SizeMatch:
    """Return the largest standard size that fits within the given size.

    The comparison ignores orientation; the result is rotated back to match
    the input (portrait when height > width, landscape otherwise). When no
    size fits, the smallest table entry is returned.
    """
    width_in = width_px / DPI
    height_in = height_px / DPI
    is_portrait = height_in > width_in
    min_in = min(width_in, height_in)
    max_in = max(width_in, height_in)

    best = STANDARD_SIZES[0]
    for size in reversed(STANDARD_SIZES):
        if size.w <= min_in and size.h <= max_in:
            best = size
            break

    if is_portrait:
        return SizeMatch(best.w * DPI, best.h * DPI, best.name)
    return SizeMatch(best.h * DPI, best.w * DPI, best.name)


def snap_items(items: Iterable[ImageItem]) -> list[ImageItem]:
    """Resize images to their best standard size.

    The match is always computed from the pre-snap size so snapping twice
    gives the same result. Returns the items that were touched.
    """
    changed = []
    for item in items:
        if not item.is_snapped:
            item.pre_snap_width = item.width
            item.pre_snap_height = item.height
        best = find_best_standard_size(item.pre_snap_width, item.pre_snap_height)
        item.width = best.width
        item.height = best.height
        logger.debug(f"Snapped {item.id} to {best.name}")
        changed.append(item)
    return changed


def unsnap_items(items: Iterable[ImageItem]) -> list[ImageItem]:
    """Restore pre-snap sizes; items never snapped are left alone."""
    changed = []
    for item in items:
        if not item.is_snapped:
            continue
        item.width = item.pre_snap_width
        item.height = item.pre_snap_height
        item.pre_snap_width = None
        item.pre_snap_height = None
        changed.append(item)
    return changed
