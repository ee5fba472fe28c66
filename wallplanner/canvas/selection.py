from __future__ import annotations

import logging
from typing import Iterable, Optional

from .object import PlacedItem
from .transform import CoordinateTransform, Rect

logger = logging.getLogger(__name__)


class SelectionModel:
    """Primary selection plus the ordered multi-selection.

    When anything is selected, the primary id is always a member of
    `selected`.
    """

    def __init__(self) -> None:
        self.primary: Optional[str] = None
        self.selected: list[str] = []

    def __contains__(self, item_id: str) -> bool:
        return item_id in self.selected

    def __len__(self) -> int:
        return len(self.selected)

    def __bool__(self) -> bool:
        return bool(self.selected) or self.primary is not None

    @property
    def is_multi(self) -> bool:
        return len(self.selected) > 1

    def select(self, item_id: str, additive: bool = False) -> None:
        if not additive:
            self.deselect_all()
        if item_id not in self.selected:
            self.selected.append(item_id)
        self.primary = item_id

    def deselect_all(self) -> None:
        self.primary = None
        self.selected = []

    def targets(self) -> list[str]:
        """Ids an action on 'the selection' applies to."""
        if self.selected:
            return list(self.selected)
        return [self.primary] if self.primary else []

    def select_rect(
        self,
        rect: Rect,
        items: Iterable[PlacedItem],
        transform: CoordinateTransform,
        additive: bool = True,
    ) -> list[str]:
        """Add every item whose visual box overlaps `rect` to the selection.

        Hits are always added on top of the current selection; pass
        additive=False to start from an empty selection instead.
        """
        if not additive:
            self.deselect_all()
        hits = items_in_rect(rect, items, transform)
        for item_id in hits:
            self.select(item_id, additive=True)
        logger.debug(f"Marquee {tuple(round(v, 1) for v in rect)} selected {len(hits)} items")
        return hits

    def prune(self, valid_ids: Iterable[str]) -> None:
        """Forget ids that no longer exist in the store."""
        valid = set(valid_ids)
        self.selected = [i for i in self.selected if i in valid]
        if self.primary not in valid:
            self.primary = self.selected[-1] if self.selected else None


def items_in_rect(rect: Rect, items: Iterable[PlacedItem], transform: CoordinateTransform) -> list[str]:
    hits = []
    for it in items:
        box = transform.visual_rect(it.x, it.y, it.width, it.height)
        if box.intersects(rect):
            hits.append(it.id)
    return hits
