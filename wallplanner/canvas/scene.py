from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .selection import SelectionModel
from .store import LayoutStore, IdFactory
from .transform import CoordinateTransform, ViewState

logger = logging.getLogger(__name__)


# Change kinds sent to subscribers
GEOMETRY = "geometry"    # live move/resize of the listed items
SELECTION = "selection"  # selection changed, nothing else
ITEMS = "items"          # items added or removed
VIEW = "view"            # zoom, toggles or wall guide changed
RESET = "reset"          # everything replaced (restore, undo, clear)
MARQUEE = "marquee"      # marquee rectangle moved or ended
ASSETS = "assets"        # asset registry changed


@dataclass
class Change:
    kind: str
    item_ids: tuple[str, ...] = ()


Listener = Callable[[Change], None]


@dataclass
class EditorState:
    """Everything the editing core mutates, owned by one LayoutEditor."""

    store: LayoutStore = field(default_factory=LayoutStore)
    selection: SelectionModel = field(default_factory=SelectionModel)
    view: ViewState = field(default_factory=ViewState)
    transform: Optional[CoordinateTransform] = None
    listeners: list[Listener] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.transform is None:
            self.transform = CoordinateTransform(self.view)

    @classmethod
    def create(cls, id_factory: Optional[IdFactory] = None) -> "EditorState":
        return cls(store=LayoutStore(id_factory))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self.listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return _unsubscribe

    def notify(self, kind: str, item_ids=()) -> None:
        change = Change(kind, tuple(item_ids))
        for listener in list(self.listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Listener failed while handling {kind} change")
