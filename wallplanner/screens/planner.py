import logging
from typing import Optional

import tkinter as tk
from tkinter import ttk, filedialog, messagebox

from wallplanner.core import Screen, warn, COLOR_BG_CANVAS, COLOR_BG_DARK, COLOR_TEXT, WALL_PRESETS, settings
from wallplanner.canvas import LayoutEditor, PointerEvent, JsonFileStore, AssetLoader
from wallplanner.canvas.assets import IMAGE_EXTENSIONS
from wallplanner.canvas.renderer import CanvasRenderer
from wallplanner.canvas.scene import ASSETS, ITEMS, MARQUEE, RESET, VIEW

logger = logging.getLogger(__name__)

SHIFT_MASK = 0x0001


def pointer_from_tk_event(canvas: tk.Canvas, e) -> PointerEvent:
    """Translate a tk mouse event into viewport coords plus scroll offset."""
    return PointerEvent(
        x=float(e.x),
        y=float(e.y),
        scroll_x=float(canvas.canvasx(0)),
        scroll_y=float(canvas.canvasy(0)),
        shift=bool(getattr(e, "state", 0) & SHIFT_MASK),
        button=e.num if isinstance(getattr(e, "num", None), int) else 1,
    )


def asset_entries(store) -> list[tuple[int, str]]:
    """Sidebar rows for every asset. Assets stay listed after placement so
    they can be added again; the suffix counts the copies on the canvas."""
    counts: dict[int, int] = {}
    for it in store.image_items():
        counts[it.source_id] = counts.get(it.source_id, 0) + 1
    rows = []
    for a in store.assets:
        label = a.name if a.from_library else f"{a.name}  (uploaded)"
        if counts.get(a.id):
            label += f"  ×{counts[a.id]}"
        rows.append((a.id, label))
    return rows


class PlannerScreen(Screen):
    """Wall planner: asset sidebar, toolbar and the editing canvas."""

    def __init__(self, master, app, editor: Optional[LayoutEditor] = None):
        super().__init__(master, app)
        self.brand_bar(self)

        if editor is None:
            storage = JsonFileStore(settings.storage_path)
            editor = LayoutEditor(storage=storage)
            editor.loader = AssetLoader(
                editor.store,
                max_size=int(settings.preview_max_size),
                quality=int(settings.preview_quality),
            )
        self.editor = editor

        # Toolbar
        bar = tk.Frame(self, bg=COLOR_BG_DARK)
        bar.pack(fill="x", padx=10, pady=(6, 6))
        self._tool_button(bar, "Upload", self._upload)
        self._tool_button(bar, "Place all", self._place_all)
        self._tool_button(bar, "Fit", self._fit_to_view)
        self._tool_button(bar, "−", lambda: self.editor.zoom_step(-1))
        self._tool_button(bar, "+", lambda: self.editor.zoom_step(1))
        self._tool_button(bar, '18" × 24"', lambda: self.editor.add_block(18, 24))
        self._tool_button(bar, '24" × 36"', lambda: self.editor.add_block(24, 36))
        self._tool_button(bar, "Move out of guide", self.editor.move_out_of_guide)
        self._tool_button(bar, "Undo", self.editor.undo)
        self._tool_button(bar, "Clear", self._clear_canvas)
        self._tool_button(bar, "Remove uploads", self._remove_uploads)

        tk.Frame(bar, bg="white", width=2).pack(side="left", fill="y", padx=10, pady=6)

        view = self.editor.view
        self.show_labels = tk.BooleanVar(value=view.show_labels)
        self.show_handles = tk.BooleanVar(value=view.show_handles)
        self.snap_to_standard = tk.BooleanVar(value=view.snap_to_standard)
        for text, var, cmd in (
            ("Labels", self.show_labels, lambda: self.editor.set_show_labels(self.show_labels.get())),
            ("Handles", self.show_handles, lambda: self.editor.set_show_handles(self.show_handles.get())),
            ("Snap to standard", self.snap_to_standard, lambda: self.editor.set_snap_to_standard(self.snap_to_standard.get())),
        ):
            tk.Checkbutton(
                bar, text=text, variable=var, command=cmd,
                bg=COLOR_BG_DARK, fg="white", selectcolor=COLOR_BG_DARK, activebackground=COLOR_BG_DARK,
            ).pack(side="left", padx=4)

        tk.Label(bar, text="Wall:", bg=COLOR_BG_DARK, fg="white").pack(side="left", padx=(12, 4))
        self.wall_preset = tk.StringVar(value=view.wall_preset)
        self._preset_combo = ttk.Combobox(
            bar, textvariable=self.wall_preset, state="readonly",
            values=list(WALL_PRESETS.keys()), width=8, justify="center",
        )
        self._preset_combo.pack(side="left")
        self._preset_combo.bind("<<ComboboxSelected>>", self._on_preset_selected)

        self.size_label = tk.Label(bar, text="", bg=COLOR_BG_DARK, fg="white", justify="left", font=("Helvetica", 10))
        self.size_label.pack(side="right", padx=8)

        # Sidebar with unplaced assets
        side = ttk.Frame(self, style="Card.TFrame")
        side.pack(side="left", fill="y", padx=(10, 0), pady=(0, 10))
        ttk.Label(side, text="Images", style="H2.TLabel").pack(anchor="w", padx=8, pady=(8, 4))
        ttk.Label(side, text="Double-click to place", style="Muted.TLabel").pack(anchor="w", padx=8, pady=(0, 4))
        self.asset_list = tk.Listbox(side, width=28, activestyle="none", exportselection=False)
        self.asset_list.pack(fill="y", expand=True, padx=8, pady=(0, 8))
        self.asset_list.bind("<Double-Button-1>", self._on_asset_activate)
        self.asset_list.bind("<Return>", self._on_asset_activate)
        self._asset_ids: list[int] = []

        # Canvas
        board = tk.Frame(self, bg="black")
        board.pack(expand=True, fill="both", padx=10, pady=(0, 10))
        self.canvas = tk.Canvas(board, bg=COLOR_BG_CANVAS, highlightthickness=0, takefocus=1)
        ybar = ttk.Scrollbar(board, orient="vertical", command=self.canvas.yview)
        xbar = ttk.Scrollbar(board, orient="horizontal", command=self.canvas.xview)
        self.canvas.configure(xscrollcommand=xbar.set, yscrollcommand=ybar.set)
        ybar.pack(side="right", fill="y")
        xbar.pack(side="bottom", fill="x")
        self.canvas.pack(expand=True, fill="both")

        self.renderer = CanvasRenderer(self.canvas, self.editor.state, interaction=self.editor.interaction)
        self._unsubscribe = self.editor.subscribe(self._on_change)

        self.canvas.bind("<ButtonPress-1>", self.on_press)
        self.canvas.bind("<ButtonPress-1>", lambda _e: self.canvas.focus_set(), add="+")
        self.canvas.bind("<B1-Motion>", self.on_motion)
        self.canvas.bind("<ButtonRelease-1>", self.on_release)
        self.canvas.bind("<Control-MouseWheel>", self.on_wheel_zoom)
        self.canvas.bind("<Control-Button-4>", lambda _e: self.editor.zoom_step(1))
        self.canvas.bind("<Control-Button-5>", lambda _e: self.editor.zoom_step(-1))
        for seq in ("<Delete>", "<BackSpace>"):
            self.app.bind(seq, self.on_delete)
        for seq in ("<Control-z>", "<Command-z>"):
            try:
                self.app.bind(seq, self.on_undo)
            except tk.TclError:
                # <Command-*> only exists on macOS
                logger.debug(f"Key sequence {seq} not supported here")

        self.after(0, self._startup)

    def _tool_button(self, parent, text: str, command):
        btn = tk.Button(
            parent, text=text, command=command, bg="#c7c7c7", fg=COLOR_TEXT,
            relief="flat", padx=8, pady=2, cursor="hand2",
        )
        btn.pack(side="left", padx=3, pady=6)
        return btn

    def destroy(self):
        self._unsubscribe()
        self.renderer.destroy()
        super().destroy()

    # --- Startup ---
    def _startup(self):
        self.editor.startup(settings.library_dir, settings.default_layout_path)
        self.renderer.render_all()
        self._sync_controls()
        self.refresh_assets()
        self.refresh_size_label()

    # --- Change handling ---
    def _on_change(self, change):
        if change.kind in (ITEMS, RESET, ASSETS):
            self.refresh_assets()
        if change.kind in (RESET, VIEW):
            self._sync_controls()
        if change.kind != MARQUEE:
            self.refresh_size_label()

    def _sync_controls(self):
        view = self.editor.view
        self.show_labels.set(view.show_labels)
        self.show_handles.set(view.show_handles)
        self.snap_to_standard.set(view.snap_to_standard)
        self.wall_preset.set(view.wall_preset)

    def refresh_assets(self):
        rows = asset_entries(self.editor.store)
        self._asset_ids = [asset_id for asset_id, _ in rows]
        self.asset_list.delete(0, "end")
        for _, label in rows:
            self.asset_list.insert("end", label)

    def refresh_size_label(self):
        self.size_label.configure(text=self.editor.size_summary())

    # --- Pointer ---
    def on_press(self, e):
        pe = pointer_from_tk_event(self.canvas, e)
        hit = self.renderer.hit_test()
        interaction = self.editor.interaction
        if hit is None:
            interaction.press_background(pe)
        elif hit[0] == "handle":
            interaction.press_handle(hit[1], hit[2], pe)
        else:
            interaction.press_item(hit[1], pe)

    def on_motion(self, e):
        self.editor.interaction.move(pointer_from_tk_event(self.canvas, e))

    def on_release(self, e):
        self.editor.interaction.release(pointer_from_tk_event(self.canvas, e))

    def on_wheel_zoom(self, e):
        try:
            delta = int(e.delta)
        except (TypeError, ValueError):
            delta = 0
        if delta:
            self.editor.zoom_step(1 if delta > 0 else -1)
        return "break"

    # --- Keyboard ---
    def on_delete(self, e):
        # Leave text entry widgets alone
        if isinstance(getattr(e, "widget", None), (tk.Entry, ttk.Entry, ttk.Combobox)):
            return None
        self.editor.delete_selection()
        return "break"

    def on_undo(self, _e=None):
        self.editor.undo()
        return "break"

    # --- Actions ---
    def _viewport(self) -> tuple[int, int]:
        return max(1, self.canvas.winfo_width()), max(1, self.canvas.winfo_height())

    def _place_all(self):
        if not self.editor.store.assets:
            warn("No images loaded.", "Place all")
            return
        self.editor.place_all(*self._viewport())

    def _fit_to_view(self):
        self.editor.fit_to_view(*self._viewport())

    def _upload(self):
        pattern = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        paths = filedialog.askopenfilenames(
            title="Upload Images",
            filetypes=[("Image Files", pattern), ("All Files", "*.*")],
        )
        if not paths:
            return
        added = self.editor.import_uploads(paths)
        skipped = len(paths) - len(added)
        if skipped:
            logger.info(f"Skipped {skipped} file(s) that are not images")

    def _on_asset_activate(self, _e=None):
        sel = self.asset_list.curselection()
        if not sel:
            return
        self.editor.add_asset_item(self._asset_ids[sel[0]])

    def _on_preset_selected(self, _e=None):
        self.editor.set_wall_preset(self.wall_preset.get())

    def _clear_canvas(self):
        if not messagebox.askyesno("Clear canvas", "Remove every item from the canvas?"):
            return
        self.editor.clear_canvas()

    def _remove_uploads(self):
        if not messagebox.askyesno("Remove uploads", "Remove all uploaded images?"):
            return
        self.editor.remove_uploaded_assets()
