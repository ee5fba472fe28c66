from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class JsonFileStore:
    """String key-value store kept in one JSON file.

    Every call reads or rewrites the whole file. Errors (unreadable file, disk
    full) propagate to the caller, which decides whether they are fatal.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def load_default_layout(path: str | Path) -> Optional[dict]:
    """Read the optional snapshot-shaped default layout document."""
    p = Path(path)
    if not p.exists():
        logger.info("No default layout found")
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception:
        logger.exception(f"Failed to read default layout {p}")
        return None
    return data if isinstance(data, dict) else None
