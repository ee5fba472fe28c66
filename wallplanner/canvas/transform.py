from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

from wallplanner.core import DPI, MAX_ZOOM, MIN_ZOOM, WALL_PRESETS, WALL_GUIDE_OFFSET


class Rect(NamedTuple):
    """Axis-aligned rectangle as (left, top, right, bottom)."""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_points(cls, x1: float, y1: float, x2: float, y2: float) -> "Rect":
        return cls(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))

    @classmethod
    def from_size(cls, x: float, y: float, w: float, h: float) -> "Rect":
        return cls(x, y, x + w, y + h)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def intersects(self, other: "Rect") -> bool:
        # Touching edges do not count as overlap
        return (
            self.left < other.right and
            self.right > other.left and
            self.top < other.bottom and
            self.bottom > other.top
        )


@dataclass
class ViewState:
    """View settings that are persisted with every snapshot.

    `zoom` maps real space to visual space (visual = real * zoom). Producers
    keep it in (0, 1]; restoring a snapshot without a zoom falls back to 1.
    """

    zoom: float = 1.0
    show_labels: bool = True
    show_handles: bool = False
    snap_to_standard: bool = False
    wall_preset: str = "none"

    def wall_guide(self) -> Optional[Rect]:
        """Real-space rectangle of the active wall guide, or None."""
        preset = WALL_PRESETS.get(self.wall_preset)
        if not preset:
            return None
        w_in, h_in, _label = preset
        return Rect.from_size(WALL_GUIDE_OFFSET, WALL_GUIDE_OFFSET, w_in * DPI, h_in * DPI)

    def wall_guide_label(self) -> str:
        preset = WALL_PRESETS.get(self.wall_preset)
        if not preset:
            return ""
        w_in, h_in, label = preset
        return f'{label}: {format_inches(w_in)}" × {format_inches(h_in)}"'


class CoordinateTransform:
    """Convert between real (1/DPI inch) and visual (zoomed screen) units.

    The transform holds no zoom of its own; it reads the owning ViewState so a
    zoom change is picked up immediately by every caller.
    """

    def __init__(self, view: ViewState) -> None:
        self.view = view

    @property
    def zoom(self) -> float:
        return self.view.zoom

    def set_zoom(self, zoom: float) -> float:
        """Store a new zoom clamped to [MIN_ZOOM, MAX_ZOOM]."""
        try:
            z = float(zoom)
        except (TypeError, ValueError):
            z = 1.0
        if z != z or z <= 0.0:  # NaN or non-positive
            z = MIN_ZOOM
        self.view.zoom = min(MAX_ZOOM, max(MIN_ZOOM, z))
        return self.view.zoom

    def to_visual(self, value: float) -> float:
        return value * self.view.zoom

    def to_real(self, value: float) -> float:
        return value / self.view.zoom

    def visual_rect(self, x: float, y: float, w: float, h: float) -> Rect:
        return Rect.from_size(self.to_visual(x), self.to_visual(y), self.to_visual(w), self.to_visual(h))


def px_to_inches(value: float) -> float:
    return value / DPI


def format_inches(value: float) -> str:
    """18.0 -> '18', 8.5 -> '8.5'."""
    v = float(value)
    return str(int(v)) if v.is_integer() else f"{v:g}"


def inches_label(width_px: float, height_px: float) -> str:
    return f'{px_to_inches(width_px):.1f}" × {px_to_inches(height_px):.1f}"'
