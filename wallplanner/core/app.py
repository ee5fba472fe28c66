# App (Tk), ttk styles, base Screen
import logging
import tkinter as tk
from tkinter import ttk, messagebox

from .state import APP_TITLE, settings

logger = logging.getLogger(__name__)

# Shared UI colors
COLOR_BG_SCREEN = "#878787"
COLOR_BG_DARK = "#474747"
COLOR_BG_LIGHT = "#a6a6a6"
COLOR_BG_CANVAS = "#d9d9d9"
COLOR_TEXT = "#000000"

UI_SCALE = 1.0


def warn(message: str, title: str = "Warning"):
    messagebox.showwarning(title, message)


def scale_px(value: float) -> int:
    """Scale pixel values by UI_SCALE with rounding."""
    return int(round(value * UI_SCALE))


def apply_styles(root):
    style = ttk.Style(root)
    style.theme_use("clam")
    style.configure("Screen.TFrame",  background=COLOR_BG_SCREEN)
    style.configure("Card.TFrame",    background=COLOR_BG_LIGHT)
    style.configure("H2.TLabel",      background=COLOR_BG_LIGHT, foreground="black", font=("Helvetica", 14))
    style.configure("Muted.TLabel",   background=COLOR_BG_LIGHT, foreground="#333")


class App(tk.Tk):
    def __init__(self, title: str = APP_TITLE, size: str = ""):
        super().__init__()
        self.title(title)
        size = size or settings.window_size
        self.size = (int(size.split("x")[0]), int(size.split("x")[1]))

        self.resizable(True, True)
        self.minsize(960, 640)
        self.geometry(f"{self.size[0]}x{self.size[1]}")
        self.is_fullscreen = False

        self.configure(bg=COLOR_BG_SCREEN)
        apply_styles(self)
        self.current = None

    def show_screen(self, screen_cls):
        if self.current is not None:
            self.current.destroy()
        self.current = screen_cls(self, self)
        self.current.pack(expand=True, fill="both")

    def toggle_fullscreen(self):
        self.attributes("-fullscreen", not self.is_fullscreen)
        self.is_fullscreen = not self.is_fullscreen


class Screen(ttk.Frame):
    def __init__(self, master: tk.Tk, app: App):
        super().__init__(master)
        self.app = app
        self.configure(style="Screen.TFrame")
        self.app.bind("<F11>", lambda _e: self.app.toggle_fullscreen())

    def scale_px(self, value: float) -> int:
        return scale_px(value)

    def brand_bar(self, parent):
        bar = tk.Frame(parent, bg=COLOR_BG_DARK, height=scale_px(36))
        bar.pack(fill="x")
        bar.pack_propagate(False)
        tk.Label(
            bar,
            text=APP_TITLE,
            bg=COLOR_BG_DARK,
            fg="#f0f0f0",
            font=("Helvetica", int(round(18 * UI_SCALE))),
        ).pack(side="left", padx=self.scale_px(8), pady=0)
        return bar
