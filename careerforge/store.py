"""JSON file key/value store backing CareerForge user data."""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(".careerforge_data")


def _hash(text: str) -> str:
    """Return a short SHA-256 hex digest."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


class JsonFileStore:
    """One JSON document per key under *data_dir*.

    Writes replace the whole document. There is no locking, so the last
    writer wins when two sessions share a key.
    """

    def __init__(self, data_dir: Path = DEFAULT_DATA_DIR):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{_hash(key)}.json"

    def get(self, key: str) -> Any | None:
        """Return the document stored under *key*, or None if absent or unreadable."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Could not read stored value for %s at %s", key, path, exc_info=True)
            return None

    def put(self, key: str, value: Any) -> None:
        self._path(key).write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
