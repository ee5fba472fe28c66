from __future__ import annotations

import io
import logging
from typing import Optional

import tkinter as tk
from PIL import Image, ImageTk

from wallplanner.core import MAX_PREVIEW_SIZE
from .interaction import InteractionController
from .object import BlockItem, ImageItem, PlacedItem
from .scene import Change, EditorState, GEOMETRY, ITEMS, MARQUEE, RESET, SELECTION, VIEW
from .transform import inches_label

logger = logging.getLogger(__name__)

HANDLE_SIZE = 10
HANDLE_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")

COLOR_OUTLINE = "#5c5c5c"
COLOR_SELECTED = "#2f80ed"
COLOR_OVER_MAX = "#e53935"
COLOR_BLOCK = "#f2e3c6"
COLOR_LABEL = "#202020"
COLOR_MARKER = "#ff9800"
COLOR_GUIDE = "#3a7d44"
COLOR_MARQUEE = "#2f80ed"

# Largest side rasterised for an image; bigger items show only their body
MAX_PHOTO_SIDE = 2 * MAX_PREVIEW_SIZE


class CanvasRenderer:
    """Draw the editor state on a tk.Canvas.

    The renderer only reads state: it subscribes to change notifications and
    rebuilds or moves canvas items accordingly. Every canvas item of a placed
    item carries the tags "item" and "item:<id>"; resize handles additionally
    carry "handle" and "handle:<position>".
    """

    def __init__(
        self,
        canvas: tk.Canvas,
        state: EditorState,
        interaction: Optional[InteractionController] = None,
        draw_images: bool = True,
    ) -> None:
        self.canvas = canvas
        self.state = state
        self.interaction = interaction
        self.draw_images = draw_images
        self._ids: dict[str, dict] = {}
        self._photos: dict[str, tuple[tuple[int, int], object]] = {}
        self._broken: set[str] = set()
        self._guide_ids: list[int] = []
        self._marquee_id: Optional[int] = None
        self._unsubscribe = state.subscribe(self.on_change)

    def destroy(self) -> None:
        self._unsubscribe()
        self._photos.clear()
        self._broken.clear()

    # --- Change dispatch ---
    def on_change(self, change: Change) -> None:
        kind = change.kind
        if kind in (RESET, VIEW):
            self.render_all()
        elif kind == ITEMS:
            self.sync_items(change.item_ids)
        elif kind == GEOMETRY:
            for item_id in change.item_ids:
                item = self.state.store.find(item_id)
                if item is not None:
                    self.update_item(item)
            self.update_scrollregion()
        elif kind == SELECTION:
            self.update_selection()
        elif kind == MARQUEE:
            self.update_marquee()

    # --- Full redraw ---
    def render_all(self) -> None:
        self.canvas.delete("item")
        self.canvas.delete("guide")
        self._ids.clear()
        self._guide_ids = []
        self.draw_wall_guide()
        for item in self.state.store:
            self.draw_item(item)
        self.update_selection()
        self.update_scrollregion()

    def sync_items(self, item_ids) -> None:
        """Redraw the listed items and drop visuals of items that are gone."""
        present = {it.id for it in self.state.store}
        for stale in [i for i in self._ids if i not in present]:
            self.remove_item(stale)
        for item_id in item_ids:
            item = self.state.store.find(item_id)
            if item is None:
                continue
            self.remove_item(item_id)
            self.draw_item(item)
        self.update_selection()
        self.update_scrollregion()

    def draw_wall_guide(self) -> None:
        guide = self.state.view.wall_guide()
        if guide is None:
            return
        t = self.state.transform
        rid = self.canvas.create_rectangle(
            t.to_visual(guide.left), t.to_visual(guide.top),
            t.to_visual(guide.right), t.to_visual(guide.bottom),
            outline=COLOR_GUIDE, dash=(6, 4), width=2, tags=("guide",),
        )
        tid = self.canvas.create_text(
            t.to_visual(guide.left) + 6, t.to_visual(guide.top) + 6,
            text=self.state.view.wall_guide_label(), anchor="nw",
            fill=COLOR_GUIDE, font=("Helvetica", 10, "bold"), tags=("guide",),
        )
        self._guide_ids = [rid, tid]
        self.canvas.tag_lower("guide")

    # --- Items ---
    def draw_item(self, item: PlacedItem) -> None:
        tags = ("item", f"item:{item.id}")
        x0, y0, x1, y1 = self._visual_box(item)
        ids: dict = {"handles": {}}
        fill = COLOR_BLOCK if isinstance(item, BlockItem) else "#ffffff"
        ids["body"] = self.canvas.create_rectangle(x0, y0, x1, y1, fill=fill, outline=COLOR_OUTLINE, width=1, tags=tags)
        if isinstance(item, ImageItem) and self.draw_images:
            photo = self._photo_for(item, int(round(x1 - x0)), int(round(y1 - y0)))
            if photo is not None:
                ids["image"] = self.canvas.create_image(x0, y0, image=photo, anchor="nw", tags=tags)
        if isinstance(item, BlockItem):
            ids["name"] = self.canvas.create_text(
                (x0 + x1) / 2, (y0 + y1) / 2, text=item.name,
                fill=COLOR_LABEL, font=("Helvetica", 11, "bold"), tags=tags,
            )
        ids["label"] = self.canvas.create_text(
            x0 + 4, y1 - 4, text=self.label_text(item), anchor="sw",
            fill=COLOR_LABEL, font=("Helvetica", 9), tags=tags,
            state="normal" if self.state.view.show_labels else "hidden",
        )
        ids["marker"] = self.canvas.create_text(
            x0 + 6, y0 + 4, text="L", anchor="nw", fill=COLOR_MARKER,
            font=("Helvetica", 12, "bold"), tags=tags,
            state="normal" if item.is_large() else "hidden",
        )
        for pos in HANDLE_POSITIONS:
            hx, hy = self._handle_anchor(pos, x0, y0, x1, y1)
            ids["handles"][pos] = self.canvas.create_rectangle(
                hx - HANDLE_SIZE / 2, hy - HANDLE_SIZE / 2, hx + HANDLE_SIZE / 2, hy + HANDLE_SIZE / 2,
                fill="#ffffff", outline=COLOR_SELECTED, tags=tags + ("handle", f"handle:{pos}"),
            )
        self._ids[item.id] = ids

    def update_item(self, item: PlacedItem) -> None:
        ids = self._ids.get(item.id)
        if ids is None:
            self.draw_item(item)
            self.update_selection()
            return
        x0, y0, x1, y1 = self._visual_box(item)
        self.canvas.coords(ids["body"], x0, y0, x1, y1)
        if isinstance(item, ImageItem) and self.draw_images:
            self._update_photo(item, ids, x0, y0, x1, y1)
        if "name" in ids:
            self.canvas.coords(ids["name"], (x0 + x1) / 2, (y0 + y1) / 2)
        self.canvas.coords(ids["label"], x0 + 4, y1 - 4)
        self.canvas.itemconfig(ids["label"], text=self.label_text(item))
        self.canvas.coords(ids["marker"], x0 + 6, y0 + 4)
        self.canvas.itemconfig(ids["marker"], state="normal" if item.is_large() else "hidden")
        for pos, hid in ids["handles"].items():
            hx, hy = self._handle_anchor(pos, x0, y0, x1, y1)
            self.canvas.coords(hid, hx - HANDLE_SIZE / 2, hy - HANDLE_SIZE / 2, hx + HANDLE_SIZE / 2, hy + HANDLE_SIZE / 2)
        self._style_item(item, ids)

    def remove_item(self, item_id: str) -> None:
        if self._ids.pop(item_id, None) is not None:
            self.canvas.delete(f"item:{item_id}")
        self._photos.pop(item_id, None)
        self._broken.discard(item_id)

    def update_selection(self) -> None:
        for item in self.state.store:
            ids = self._ids.get(item.id)
            if ids is not None:
                self._style_item(item, ids)

    def _style_item(self, item: PlacedItem, ids: dict) -> None:
        selected = item.id in self.state.selection
        if item.is_over_max():
            outline, width = COLOR_OVER_MAX, 3
        elif selected:
            outline, width = COLOR_SELECTED, 3
        else:
            outline, width = COLOR_OUTLINE, 1
        self.canvas.itemconfig(ids["body"], outline=outline, width=width)
        show_handles = self.state.view.show_handles or selected
        for hid in ids["handles"].values():
            self.canvas.itemconfig(hid, state="normal" if show_handles else "hidden")
        self.canvas.itemconfig(ids["label"], state="normal" if self.state.view.show_labels else "hidden")
        if selected:
            self.canvas.tag_raise(f"item:{item.id}")

    # --- Marquee ---
    def update_marquee(self) -> None:
        data = self.interaction.marquee if self.interaction is not None else None
        if data is None:
            if self._marquee_id is not None:
                self.canvas.delete(self._marquee_id)
                self._marquee_id = None
            return
        r = data.rect()
        if self._marquee_id is None:
            self._marquee_id = self.canvas.create_rectangle(
                r.left, r.top, r.right, r.bottom, outline=COLOR_MARQUEE, dash=(3, 3), tags=("marquee",),
            )
        else:
            self.canvas.coords(self._marquee_id, r.left, r.top, r.right, r.bottom)

    # --- Hit testing ---
    def hit_test(self) -> Optional[tuple[str, str, Optional[str]]]:
        """Classify the canvas item under the pointer.

        Returns ("handle", item_id, position), ("item", item_id, None) or None
        for the background (including the wall guide).
        """
        hit = self.canvas.find_withtag("current")
        if not hit:
            return None
        tags = self.canvas.gettags(hit[0])
        item_id = None
        handle = None
        for tag in tags:
            if tag.startswith("item:"):
                item_id = tag[len("item:"):]
            elif tag.startswith("handle:"):
                handle = tag[len("handle:"):]
        if item_id is None:
            return None
        if handle is not None:
            return ("handle", item_id, handle)
        return ("item", item_id, None)

    def update_scrollregion(self) -> None:
        t = self.state.transform
        max_right, max_bottom = self.state.store.extent()
        guide = self.state.view.wall_guide()
        if guide is not None:
            max_right = max(max_right, guide.right)
            max_bottom = max(max_bottom, guide.bottom)
        try:
            self.canvas.configure(scrollregion=(0, 0, t.to_visual(max_right) + 200, t.to_visual(max_bottom) + 200))
        except tk.TclError:
            logger.exception("Failed to update canvas scrollregion")

    # --- Helpers ---
    @staticmethod
    def label_text(item: PlacedItem) -> str:
        return f"{item.width:.0f} × {item.height:.0f}px\n{inches_label(item.width, item.height)}"

    def _visual_box(self, item: PlacedItem) -> tuple[float, float, float, float]:
        return tuple(self.state.transform.visual_rect(item.x, item.y, item.width, item.height))

    @staticmethod
    def _handle_anchor(pos: str, x0: float, y0: float, x1: float, y1: float) -> tuple[float, float]:
        return (
            x0 if pos.endswith("left") else x1,
            y0 if pos.startswith("top") else y1,
        )

    def _update_photo(self, item: ImageItem, ids: dict, x0: float, y0: float, x1: float, y1: float) -> None:
        photo = self._photo_for(item, int(round(x1 - x0)), int(round(y1 - y0)))
        if photo is None:
            if "image" in ids:
                self.canvas.itemconfig(ids["image"], state="hidden")
        elif "image" in ids:
            self.canvas.coords(ids["image"], x0, y0)
            self.canvas.itemconfig(ids["image"], image=photo, state="normal")
        else:
            ids["image"] = self.canvas.create_image(
                x0, y0, image=photo, anchor="nw", tags=("item", f"item:{item.id}"),
            )
            self.canvas.tag_raise(ids["image"], ids["body"])

    def _photo_for(self, item: ImageItem, w_px: int, h_px: int):
        """Scaled PhotoImage of the item's asset, cached per visual size.

        Returns None for undecodable assets and for items larger than
        MAX_PHOTO_SIDE on screen, which are drawn without their picture.
        """
        if w_px < 1 or h_px < 1 or item.id in self._broken:
            return None
        if max(w_px, h_px) > MAX_PHOTO_SIDE:
            self._photos.pop(item.id, None)
            return None
        cached = self._photos.get(item.id)
        if cached is not None and cached[0] == (w_px, h_px):
            return cached[1]
        asset = self.state.store.asset(item.source_id)
        if asset is None:
            return None
        try:
            with Image.open(io.BytesIO(asset.data)) as im:
                pil = im.convert("RGB").resize((w_px, h_px), Image.Resampling.BILINEAR)
            photo = ImageTk.PhotoImage(pil)
        except (OSError, ValueError, tk.TclError):
            logger.exception(f"Failed to render image for {item.name}")
            self._broken.add(item.id)
            return None
        # Keep a reference so Tk does not drop the image
        self._photos[item.id] = ((w_px, h_px), photo)
        return photo
