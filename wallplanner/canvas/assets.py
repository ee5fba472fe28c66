from __future__ import annotations

import io
import json
import base64
import logging
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from wallplanner.core import MAX_PREVIEW_SIZE, PREVIEW_QUALITY
from .object import Asset
from .store import LayoutStore

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff"}
LIBRARY_INDEX = "posters.json"


class DecodedImage:
    """Natural size plus the preview bytes of a decoded image."""

    __slots__ = ("width", "height", "preview")

    def __init__(self, width: int, height: int, preview: bytes) -> None:
        self.width = width
        self.height = height
        self.preview = preview


def decode_image(
    data: bytes,
    max_size: int = MAX_PREVIEW_SIZE,
    quality: int = PREVIEW_QUALITY,
) -> DecodedImage:
    """Read the natural size of `data` and build a downscaled JPEG preview.

    Raises PIL.UnidentifiedImageError / OSError for data that is not an image.
    """
    with Image.open(io.BytesIO(data)) as im:
        width, height = int(im.width), int(im.height)
        preview = im.convert("RGB")
    if width > max_size or height > max_size:
        preview.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    preview.save(buf, format="JPEG", quality=int(quality))
    return DecodedImage(width, height, buf.getvalue())


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(url: str) -> bytes:
    """Decode a base64 data URL; raises ValueError when malformed."""
    if not url.startswith("data:") or "," not in url:
        raise ValueError("not a data URL")
    header, payload = url.split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("data URL is not base64 encoded")
    return base64.b64decode(payload, validate=True)


def is_image_name(name: str) -> bool:
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


class AssetLoader:
    """Turn bundled files and user uploads into registered Assets.

    Library preloading decodes every file concurrently and waits for the whole
    batch; a file that fails to load is logged and skipped.
    """

    def __init__(
        self,
        store: LayoutStore,
        max_size: int = MAX_PREVIEW_SIZE,
        quality: int = PREVIEW_QUALITY,
        max_workers: Optional[int] = None,
    ) -> None:
        self.store = store
        self.max_size = max_size
        self.quality = quality
        self.max_workers = max_workers

    def library_names(self, library_dir: str | Path) -> list[str]:
        """File names listed in posters.json, or every image in the folder."""
        root = Path(library_dir)
        index = root / LIBRARY_INDEX
        names: list[str] = []
        if index.exists():
            try:
                data = json.loads(index.read_text(encoding="utf-8"))
                names = [str(n) for n in data]
            except Exception:
                logger.exception(f"Could not load {index}")
                return []
        elif root.is_dir():
            names = [p.name for p in root.iterdir() if p.is_file() and is_image_name(p.name)]
        else:
            logger.info(f"No image library at {root}")
        return sorted(names, key=str.casefold)

    def _load_file(self, path: Path) -> Optional[tuple[str, DecodedImage]]:
        try:
            decoded = decode_image(path.read_bytes(), self.max_size, self.quality)
        except (OSError, UnidentifiedImageError, ValueError):
            logger.exception(f"Failed to load: {path.name}")
            return None
        return path.name, decoded

    def preload(self, library_dir: str | Path, names: Optional[Iterable[str]] = None) -> list[Asset]:
        """Decode the bundled library and register it, sorted by name."""
        root = Path(library_dir)
        names = list(names) if names is not None else self.library_names(root)
        if not names:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(self._load_file, [root / n for n in names]))
        loaded = []
        for res in results:
            if res is None:
                continue
            name, decoded = res
            loaded.append(self.store.add_asset(self._make_asset(name, decoded, from_library=True)))
        self.store.sort_assets()
        logger.info(f"Preloaded {len(loaded)} of {len(names)} library images")
        return loaded

    def import_upload(self, filename: str, data: bytes) -> Optional[Asset]:
        """Register an uploaded file; non-images and undecodable data are skipped."""
        if not is_image_name(filename):
            logger.info(f"Skipping non-image upload {filename}")
            return None
        try:
            decoded = decode_image(data, self.max_size, self.quality)
        except (OSError, UnidentifiedImageError, ValueError):
            logger.exception(f"Failed to decode upload {filename}")
            return None
        return self.store.add_asset(self._make_asset(filename, decoded, from_library=False))

    def import_files(self, paths: Iterable[str | Path]) -> list[Asset]:
        added = []
        for p in paths:
            path = Path(p)
            try:
                data = path.read_bytes()
            except OSError:
                logger.exception(f"Could not read {path}")
                continue
            asset = self.import_upload(path.name, data)
            if asset is not None:
                added.append(asset)
        return added

    def _make_asset(self, name: str, decoded: DecodedImage, from_library: bool) -> Asset:
        return Asset(
            id=self.store.new_asset_id(),
            name=name,
            data=decoded.preview,
            width=decoded.width,
            height=decoded.height,
            from_library=from_library,
        )
