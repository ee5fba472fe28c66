import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, asdict, fields

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


DPI = 300  # real pixels per inch
APP_TITLE = "Wall Planner"

INTERNAL_PATH = Path.cwd() / "_internal"
LIBRARY_PATH  = Path.cwd() / "Posters"
STORAGE_PATH  = INTERNAL_PATH / "storage.json"
SETTINGS_PATH = INTERNAL_PATH / "settings.json"
ENV_PATH      = INTERNAL_PATH / "env"
ENV_PREFIX    = "WALLPLANNER_"
DEFAULT_LAYOUT_PATH = Path.cwd() / "default-layout.json"

STORAGE_KEY = "posterPlacerState"
MAX_HISTORY = 50

# Letter paper (8.5" x 11") in real pixels
LETTER_WIDTH = 8.5 * DPI
LETTER_HEIGHT = 11 * DPI

MIN_ITEM_SIZE = 50.0    # real px, resize floor
ITEM_PADDING = 20.0     # gap between packed items
DEFAULT_DROP_POS = (50.0, 50.0)
WALL_GUIDE_OFFSET = 20.0
MIN_ZOOM = 0.01
MAX_ZOOM = 1.0         # never enlarge past physical size

MAX_PREVIEW_SIZE = 800
PREVIEW_QUALITY = 70

# name -> (width_in, height_in, label)
WALL_PRESETS = {
    "none": None,
    "dorm": (80.0, 40.0, "Dorm"),
}


@dataclass
class AppSettings:
    library_dir: str = str(LIBRARY_PATH)
    storage_path: str = str(STORAGE_PATH)
    default_layout_path: str = str(DEFAULT_LAYOUT_PATH)
    preview_max_size: int = MAX_PREVIEW_SIZE
    preview_quality: int = PREVIEW_QUALITY
    window_size: str = "1280x800"


settings = AppSettings()


def save_settings(path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(asdict(settings), f, ensure_ascii=False, indent=2)


def load_settings(path: str | Path) -> bool:
    p = Path(path)
    if not p.exists():
        return False
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception:
        logger.exception(f"Failed to read settings from {p}")
        return False
    for k, v in data.items():
        if hasattr(settings, k):
            setattr(settings, k, v)
    return True


def load_env_overrides(path: str | Path = ENV_PATH) -> list[str]:
    """Overlay settings from WALLPLANNER_* environment variables.

    Variables are read from the process environment after loading the
    optional dotenv file at `path`. Returns the names of overridden fields.
    """
    if Path(path).exists():
        load_dotenv(path)
    changed = []
    for f in fields(AppSettings):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        if f.type in (int, "int"):
            try:
                value = int(raw)
            except ValueError:
                logger.warning(f"Ignoring non-integer {ENV_PREFIX}{f.name.upper()}={raw!r}")
                continue
        else:
            value = raw
        setattr(settings, f.name, value)
        changed.append(f.name)
    return changed
