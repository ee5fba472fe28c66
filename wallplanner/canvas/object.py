from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from wallplanner.core import LETTER_WIDTH, LETTER_HEIGHT
from .transform import Rect


@dataclass(frozen=True)
class Asset:
    """A source image available for placement.

    `data` holds the preview encoding (JPEG) used for display and for inlining
    uploaded assets into snapshots; `width`/`height` are the natural pixel size
    of the original image and act as the resize ceiling of placed copies.
    """

    id: int
    name: str
    data: bytes
    width: int
    height: int
    from_library: bool = False

    @property
    def area(self) -> int:
        return int(self.width) * int(self.height)


@dataclass(eq=False)
class PlacedItem:
    """Geometry shared by every item placed on the canvas.

    All values are real pixels (1/DPI inch); x/y is the top-left corner in
    canvas space. Subclasses provide the resize ceiling via max_width and
    max_height.
    """

    kind: ClassVar[str] = ""

    id: str
    name: str
    width: float
    height: float
    x: float = 0.0
    y: float = 0.0

    @property
    def max_width(self) -> float:
        raise NotImplementedError

    @property
    def max_height(self) -> float:
        raise NotImplementedError

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def bounds(self) -> Rect:
        return Rect.from_size(self.x, self.y, self.width, self.height)

    def is_over_max(self) -> bool:
        return self.width > self.max_width or self.height > self.max_height

    def is_large(self) -> bool:
        """True when the item won't fit on letter paper in either orientation."""
        return is_larger_than_letter(self.width, self.height)


@dataclass(eq=False)
class ImageItem(PlacedItem):
    kind: ClassVar[str] = "image"

    source_id: int = -1
    natural_width: float = 0.0
    natural_height: float = 0.0
    pre_snap_width: Optional[float] = None
    pre_snap_height: Optional[float] = None

    @property
    def max_width(self) -> float:
        return self.natural_width

    @property
    def max_height(self) -> float:
        return self.natural_height

    @property
    def is_snapped(self) -> bool:
        return self.pre_snap_width is not None and self.pre_snap_height is not None


@dataclass(eq=False)
class BlockItem(PlacedItem):
    # Blocks have no natural size: the ceiling always follows the current size
    kind: ClassVar[str] = "block"

    @property
    def max_width(self) -> float:
        return self.width

    @property
    def max_height(self) -> float:
        return self.height


def is_larger_than_letter(width: float, height: float) -> bool:
    return min(width, height) > LETTER_WIDTH or max(width, height) > LETTER_HEIGHT
