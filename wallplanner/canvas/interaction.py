from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from wallplanner.core import MIN_ITEM_SIZE
from .scene import EditorState, GEOMETRY, MARQUEE, SELECTION
from .transform import Rect

logger = logging.getLogger(__name__)


class Gesture(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    MARQUEE = "marquee"


class Handle(str, Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


@dataclass
class PointerEvent:
    """Pointer position in viewport pixels plus the canvas scroll offset."""

    x: float
    y: float
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    shift: bool = False
    button: int = 1

    @property
    def canvas_x(self) -> float:
        return self.x + self.scroll_x

    @property
    def canvas_y(self) -> float:
        return self.y + self.scroll_y


@dataclass
class ResizeData:
    item_id: str
    handle: Handle
    start_x: float      # pointer, visual canvas space
    start_y: float
    start_width: float  # item, real space
    start_height: float
    start_pos_x: float
    start_pos_y: float
    aspect_ratio: float


@dataclass
class MarqueeData:
    start_x: float
    start_y: float
    current_x: float
    current_y: float

    def rect(self) -> Rect:
        return Rect.from_points(self.start_x, self.start_y, self.current_x, self.current_y)


class InteractionController:
    """Pointer-driven state machine for dragging, resizing and marquee selection.

    Exactly one gesture is active at a time. Moves mutate real geometry live;
    releasing a drag or resize calls `on_commit` so the caller can take a
    snapshot. Invalid updates (too small, negative position) are dropped for
    that event only and the gesture continues.
    """

    def __init__(self, state: EditorState, on_commit: Optional[Callable[[], None]] = None) -> None:
        self.state = state
        self.on_commit = on_commit
        self.gesture = Gesture.IDLE
        self._drag_id: Optional[str] = None
        self._drag_off: tuple[float, float] = (0.0, 0.0)
        self.resize_data: Optional[ResizeData] = None
        self.marquee: Optional[MarqueeData] = None

    @property
    def is_idle(self) -> bool:
        return self.gesture is Gesture.IDLE

    # --- Gesture start ---
    def press_item(self, item_id: str, e: PointerEvent) -> None:
        """Pointer down on an item body: start dragging it (and its group)."""
        if e.button != 1 or not self.is_idle:
            return
        st = self.state
        item = st.store.get(item_id)
        # Clicking a member of the current selection keeps the whole group
        if item_id not in st.selection:
            st.selection.select(item_id, additive=e.shift)
        st.selection.primary = item_id
        t = st.transform
        self._drag_id = item_id
        self._drag_off = (e.canvas_x - t.to_visual(item.x), e.canvas_y - t.to_visual(item.y))
        self.gesture = Gesture.DRAGGING
        st.notify(SELECTION, st.selection.selected)

    def press_handle(self, item_id: str, handle: Handle | str, e: PointerEvent) -> None:
        """Pointer down on a resize handle: start an aspect-locked resize."""
        if e.button != 1 or not self.is_idle:
            return
        st = self.state
        item = st.store.get(item_id)
        handle = Handle(handle)
        if item_id not in st.selection:
            st.selection.select(item_id, additive=e.shift)
        st.selection.primary = item_id
        self.resize_data = ResizeData(
            item_id=item_id,
            handle=handle,
            start_x=e.canvas_x,
            start_y=e.canvas_y,
            start_width=item.width,
            start_height=item.height,
            start_pos_x=item.x,
            start_pos_y=item.y,
            aspect_ratio=item.width / item.height,
        )
        self.gesture = Gesture.RESIZING
        st.notify(SELECTION, st.selection.selected)

    def press_background(self, e: PointerEvent) -> None:
        """Pointer down on empty canvas: start a marquee selection."""
        if e.button != 1 or not self.is_idle:
            return
        self.marquee = MarqueeData(e.canvas_x, e.canvas_y, e.canvas_x, e.canvas_y)
        self.gesture = Gesture.MARQUEE
        if not e.shift:
            self.state.selection.deselect_all()
            self.state.notify(SELECTION)
        self.state.notify(MARQUEE)

    # --- Gesture progress ---
    def move(self, e: PointerEvent) -> None:
        if self.gesture is Gesture.DRAGGING:
            self._drag_move(e)
        elif self.gesture is Gesture.RESIZING:
            self._resize_move(e)
        elif self.gesture is Gesture.MARQUEE:
            self.marquee.current_x = e.canvas_x
            self.marquee.current_y = e.canvas_y
            self.state.notify(MARQUEE)

    def _drag_move(self, e: PointerEvent) -> None:
        st = self.state
        item = st.store.find(self._drag_id)
        if item is None:
            return
        t = st.transform
        new_x = max(0.0, t.to_real(e.canvas_x - self._drag_off[0]))
        new_y = max(0.0, t.to_real(e.canvas_y - self._drag_off[1]))
        sel = st.selection
        if sel.is_multi and item.id in sel:
            dx = new_x - item.x
            dy = new_y - item.y
            moved = []
            for sid in sel.selected:
                other = st.store.find(sid)
                if other is None:
                    continue
                # Each member is clamped on its own; relative offsets may drift at the edge
                other.x = max(0.0, other.x + dx)
                other.y = max(0.0, other.y + dy)
                moved.append(sid)
            st.notify(GEOMETRY, moved)
        else:
            item.x = new_x
            item.y = new_y
            st.notify(GEOMETRY, (item.id,))

    def _resize_move(self, e: PointerEvent) -> None:
        rd = self.resize_data
        st = self.state
        item = st.store.find(rd.item_id)
        if item is None:
            return
        t = st.transform
        dx = t.to_real(e.canvas_x - rd.start_x)
        new_w, new_h, new_x, new_y = resize_geometry(rd, dx)
        if new_w < MIN_ITEM_SIZE or new_h < MIN_ITEM_SIZE:
            return
        if new_x < 0.0 or new_y < 0.0:
            return
        item.width = new_w
        item.height = new_h
        item.x = new_x
        item.y = new_y
        st.notify(GEOMETRY, (item.id,))

    # --- Gesture end ---
    def release(self, _e: Optional[PointerEvent] = None) -> None:
        gesture = self.gesture
        if gesture is Gesture.MARQUEE and self.marquee is not None:
            st = self.state
            st.selection.select_rect(self.marquee.rect(), st.store, st.transform, additive=True)
            self.marquee = None
            st.notify(MARQUEE)
            st.notify(SELECTION, st.selection.selected)
        self.gesture = Gesture.IDLE
        self._drag_id = None
        self.resize_data = None
        if gesture in (Gesture.DRAGGING, Gesture.RESIZING) and self.on_commit is not None:
            self.on_commit()


def resize_geometry(rd: ResizeData, dx: float) -> tuple[float, float, float, float]:
    """New (width, height, x, y) for a real-space pointer delta `dx`.

    Width follows the pointer, height follows the start aspect ratio, and the
    corner opposite the grabbed handle stays in place.
    """
    if rd.handle in (Handle.BOTTOM_RIGHT, Handle.TOP_RIGHT):
        new_w = rd.start_width + dx
        new_x = rd.start_pos_x
    else:
        new_w = rd.start_width - dx
        new_x = rd.start_pos_x + dx
    new_h = new_w / rd.aspect_ratio
    if rd.handle in (Handle.TOP_LEFT, Handle.TOP_RIGHT):
        new_y = rd.start_pos_y + (rd.start_height - new_h)
    else:
        new_y = rd.start_pos_y
    return new_w, new_h, new_x, new_y
